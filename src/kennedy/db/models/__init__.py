# Models package: split into domain modules and re-exported here
from .base import Base, TimestampMixin, utcnow
from .core import DEFAULT_LOCATION, DEFAULT_STATUS, Career, Student
from .documents import StudentDocument
from .chat import ChatHistory
from .bot import SETTINGS_ROW_ID, BotSettings
from .engine import digits_only, initialize_db, make_engine

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "Career",
    "Student",
    "DEFAULT_LOCATION",
    "DEFAULT_STATUS",
    "StudentDocument",
    "ChatHistory",
    "BotSettings",
    "SETTINGS_ROW_ID",
    "make_engine",
    "digits_only",
    "initialize_db",
]
