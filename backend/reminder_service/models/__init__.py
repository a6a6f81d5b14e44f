from reminder_service.models.user import User
from reminder_service.models.reminder import Reminder

__all__ = [
    "User",
    "Reminder",
]
