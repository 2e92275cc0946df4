"""Database package."""

from .db import get_session, init_db, load, save
from .models import Record
from .store import TimerStore

__all__ = ["get_session", "init_db", "load", "save", "Record", "TimerStore"]
