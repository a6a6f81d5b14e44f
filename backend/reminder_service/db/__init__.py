from reminder_service.db.session import async_session_maker, get_db, init_db
from reminder_service.db.base import Base

__all__ = ["Base", "async_session_maker", "get_db", "init_db"]
