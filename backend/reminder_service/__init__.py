"""Reminder scheduling and notification delivery service."""

__version__ = "0.1.0"
