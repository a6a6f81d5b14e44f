"""Tests for settings helpers."""

import pytest

from reminder_service.config import Settings


def test_channel_configuration_flags():
    s = Settings(vapid_public_key="pub", vapid_private_key=" ", smtp_host="")
    assert s.push_configured is False
    assert s.email_configured is False
    s = Settings(vapid_public_key="pub", vapid_private_key="priv", smtp_host="smtp.test")
    assert s.push_configured is True
    assert s.email_configured is True


def test_sync_database_url_drops_async_driver():
    assert Settings(database_url="postgresql+asyncpg://u:p@db/r").sync_database_url == "postgresql://u:p@db/r"


def test_production_requires_secret_and_admin_key():
    with pytest.raises(RuntimeError):
        Settings(app_env="production", secret_key="change-me-in-production", admin_api_key="k").validate_production()
    with pytest.raises(RuntimeError):
        Settings(app_env="production", secret_key="s" * 40, admin_api_key="").validate_production()
    Settings(app_env="production", secret_key="s" * 40, admin_api_key="k").validate_production()
    Settings(app_env="development", secret_key="short").validate_production()
