"""Data models for the export/import pipeline."""

from cloudlaunch_data.models.export_import import (
    DataFormat,
    DecodedPayload,
    ExportBundle,
    ExportOptions,
    ExportStats,
    FileAnalysis,
    ImportOptions,
    ImportResult,
    ValidationIssue,
)
from cloudlaunch_data.models.records import (
    Chapter,
    EntityType,
    Game,
    Memo,
    PlaySession,
    PlayStatus,
    RecordModel,
    Upload,
)

__all__ = [
    # Record models
    "RecordModel",
    "Game",
    "PlaySession",
    "Upload",
    "Chapter",
    "Memo",
    "EntityType",
    "PlayStatus",
    # Export/import models
    "DataFormat",
    "ExportOptions",
    "ImportOptions",
    "ExportBundle",
    "DecodedPayload",
    "ValidationIssue",
    "ImportResult",
    "FileAnalysis",
    "ExportStats",
]
