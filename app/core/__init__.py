"""Configuration, database sessions, errors, security and logging shared by the app."""

from app.core.config import Settings, get_settings
from app.core.database import SessionLocal, get_db

__all__ = ["Settings", "SessionLocal", "get_settings", "get_db"]
