"""Repository modules for data access."""

from cloudlaunch_data.db.repositories.base import RecordStore
from cloudlaunch_data.db.repositories.record_repository import SqliteRecordStore

__all__ = ["RecordStore", "SqliteRecordStore"]
