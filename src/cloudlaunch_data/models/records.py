"""Typed record models for the game library entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EntityType(str, Enum):
    """Closed set of record kinds handled by the pipeline."""

    GAME = "game"
    PLAY_SESSION = "playSession"
    UPLOAD = "upload"
    CHAPTER = "chapter"
    MEMO = "memo"


class PlayStatus(str, Enum):
    """Play progress of a game."""

    UNPLAYED = "unplayed"
    PLAYING = "playing"
    PLAYED = "played"


class RecordModel(BaseModel):
    """Base for stored records.

    Attributes are snake_case; the wire representation (JSON keys, CSV
    headers, SQL columns) uses the camelCase aliases.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)

    def to_wire(self) -> dict:
        """Dump the record with wire field names and JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True)


class Game(RecordModel):
    """Game entry."""

    title: str = Field(min_length=1)
    publisher: str | None = None
    image_path: str | None = None
    exe_path: str = Field(min_length=1)
    save_folder_path: str | None = None
    created_at: datetime | None = None
    play_status: PlayStatus = PlayStatus.UNPLAYED
    total_play_time: int = Field(default=0, ge=0)
    last_played: datetime | None = None
    cleared_at: datetime | None = None
    current_chapter: str | None = None


class PlaySession(RecordModel):
    """A single recorded play session."""

    game_id: str = Field(min_length=1)
    played_at: datetime | None = None
    duration: int = Field(default=0, ge=0)
    session_name: str | None = None
    chapter_id: str | None = None
    upload_id: str | None = None


class Upload(RecordModel):
    """Save data upload entry."""

    game_id: str = Field(min_length=1)
    client_id: str | None = None
    comment: str = ""
    created_at: datetime | None = None


class Chapter(RecordModel):
    """Chapter of a game, ordered per game."""

    game_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    order: int = Field(default=0, ge=0)
    created_at: datetime | None = None


class Memo(RecordModel):
    """Free-form note attached to a game."""

    game_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
