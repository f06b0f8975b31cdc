"""Database access layer."""

from cloudlaunch_data.db.database import Database

__all__ = ["Database"]
