"""Pytest configuration and fixtures for cloudlaunch-data tests."""

from collections.abc import AsyncIterator
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from cloudlaunch_data.config.settings import Settings
from cloudlaunch_data.db.database import Database
from cloudlaunch_data.db.repositories.base import RecordStore
from cloudlaunch_data.db.repositories.record_repository import SqliteRecordStore
from cloudlaunch_data.models.records import (
    Chapter,
    EntityType,
    Game,
    Memo,
    PlaySession,
    PlayStatus,
    Upload,
)
from cloudlaunch_data.services.export_service import ExportService
from cloudlaunch_data.services.import_analyzer import ImportAnalyzer
from cloudlaunch_data.services.import_service import ImportService

CREATED_AT = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Test configuration settings."""
    return Settings(
        database_path=":memory:",
        export_dir=str(tmp_path),
        log_level="INFO",
    )


@pytest_asyncio.fixture
async def memory_db() -> AsyncIterator[Database]:
    """In-memory database for fast tests."""
    db = Database(database_path=":memory:")
    await db.connect()
    await db.migrate()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def record_store(memory_db: Database) -> SqliteRecordStore:
    """Record store over the in-memory database."""
    return SqliteRecordStore(db=memory_db)


@pytest_asyncio.fixture
async def export_service(record_store: SqliteRecordStore) -> ExportService:
    """Export service."""
    return ExportService(store=record_store)


@pytest_asyncio.fixture
async def import_service(record_store: SqliteRecordStore) -> ImportService:
    """Import service."""
    return ImportService(store=record_store)


@pytest.fixture
def import_analyzer() -> ImportAnalyzer:
    """Import analyzer."""
    return ImportAnalyzer()


@pytest.fixture
def mock_store() -> AsyncMock:
    """Record store mock for call tracking."""
    store = AsyncMock(spec=RecordStore)
    store.list_all.return_value = []
    store.count.return_value = 0
    store.exists.return_value = False
    return store


@pytest.fixture
def sample_game() -> Game:
    """Game whose text fields need quoting in CSV and SQL."""
    return Game(
        id="game-1",
        title="Test, Game With Comma",
        publisher='Test "Publisher"',
        exe_path="C:\\Games\\test.exe",
        created_at=CREATED_AT,
        play_status=PlayStatus.PLAYING,
        total_play_time=3600,
    )


@pytest.fixture
def sample_records(sample_game: Game) -> dict[EntityType, list]:
    """One record of every entity type, all attached to sample_game."""
    return {
        EntityType.GAME: [
            sample_game,
            Game(id="game-2", title="Test's Game", exe_path="/usr/bin/game", created_at=CREATED_AT),
        ],
        EntityType.PLAY_SESSION: [
            PlaySession(
                id="session-1",
                game_id="game-1",
                played_at=CREATED_AT,
                duration=1800,
                session_name="Evening run",
            )
        ],
        EntityType.UPLOAD: [
            Upload(id="upload-1", game_id="game-1", client_id="client-a", created_at=CREATED_AT)
        ],
        EntityType.CHAPTER: [
            Chapter(id="chapter-1", game_id="game-1", name="Prologue", order=0, created_at=CREATED_AT)
        ],
        EntityType.MEMO: [
            Memo(
                id="memo-1",
                game_id="game-1",
                title="Boss notes",
                content="Line one\nLine two, with comma",
                created_at=CREATED_AT,
                updated_at=CREATED_AT,
            )
        ],
    }


@pytest_asyncio.fixture
async def populated_store(
    record_store: SqliteRecordStore, sample_records: dict[EntityType, list]
) -> SqliteRecordStore:
    """Record store holding sample_records."""
    for entity_type, records in sample_records.items():
        for record in records:
            await record_store.insert(entity_type, record)
    return record_store
