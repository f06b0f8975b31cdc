"""MCP server implementation for CloudLaunch data export/import."""

from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from cloudlaunch_data.config.settings import Settings
from cloudlaunch_data.db.database import Database
from cloudlaunch_data.db.repositories.record_repository import SqliteRecordStore
from cloudlaunch_data.services.export_service import ExportService
from cloudlaunch_data.services.import_analyzer import ImportAnalyzer
from cloudlaunch_data.services.import_service import ImportService
from cloudlaunch_data.tools import data_transfer_tools

# Initialize FastMCP server
mcp = FastMCP("cloudlaunch-data")

# Global service instances (initialized in main)
export_service: ExportService | None = None
import_service: ImportService | None = None
import_analyzer: ImportAnalyzer | None = None
app_settings: Settings | None = None
db: Database | None = None


async def initialize_services(settings: Settings) -> None:
    """Initialize all services and database.

    Args:
        settings: Application settings
    """
    global export_service, import_service, import_analyzer, app_settings, db

    app_settings = settings

    db = Database(settings.database_path)
    await db.connect()
    await db.migrate()

    store = SqliteRecordStore(db)
    export_service = ExportService(store)
    import_service = ImportService(store)
    import_analyzer = ImportAnalyzer()


async def shutdown_services() -> None:
    """Shutdown all services and close database."""
    global export_service, import_service, import_analyzer, app_settings, db
    if db:
        await db.close()
    export_service = import_service = import_analyzer = app_settings = db = None


def _allowed_paths() -> list[Path]:
    return [Path(app_settings.export_dir)] if app_settings else []


@mcp.tool()
async def data_export(
    format: str,
    output_dir: str | None = None,
    include_games: bool = False,
    include_play_sessions: bool = False,
    include_uploads: bool = False,
    include_chapters: bool = False,
    include_memos: bool = False,
) -> dict[str, Any]:
    """Export game library records to a JSON, CSV or SQL file.

    Args:
        format: Output format (json/csv/sql)
        output_dir: Directory for the export file (default: configured export dir)
        include_games: Export games
        include_play_sessions: Export play sessions
        include_uploads: Export save data uploads
        include_chapters: Export chapters
        include_memos: Export memos

    Returns:
        Path, format and size of the written file
    """
    if not export_service or not app_settings:
        raise RuntimeError("Services not initialized")
    return await data_transfer_tools.data_export(
        export_service,
        format,
        output_dir or str(app_settings.export_dir),
        include_games,
        include_play_sessions,
        include_uploads,
        include_chapters,
        include_memos,
        file_prefix=app_settings.export_file_prefix,
        allowed_paths=_allowed_paths(),
    )


@mcp.tool()
async def data_import(
    file_path: str,
    format: str | None = None,
    mode: str | None = None,
    include_games: bool = True,
    include_play_sessions: bool = True,
    include_uploads: bool = True,
    include_chapters: bool = True,
    include_memos: bool = True,
) -> dict[str, Any]:
    """Import game library records from a JSON, CSV or SQL file.

    The file is analyzed first and only imported if its structure is valid.

    Args:
        file_path: File to import
        format: File format (detected from extension/content when omitted)
        mode: merge keeps existing records, replace clears selected types first
        include_games: Import games
        include_play_sessions: Import play sessions
        include_uploads: Import save data uploads
        include_chapters: Import chapters
        include_memos: Import memos

    Returns:
        File analysis and import result with per-record errors
    """
    if not import_service or not import_analyzer or not app_settings:
        raise RuntimeError("Services not initialized")
    return await data_transfer_tools.data_import(
        import_service,
        import_analyzer,
        file_path,
        format,
        mode or app_settings.default_import_mode,
        include_games,
        include_play_sessions,
        include_uploads,
        include_chapters,
        include_memos,
        allowed_paths=_allowed_paths(),
    )


@mcp.tool()
async def analyze_import_file(file_path: str, format: str | None = None) -> dict[str, Any]:
    """Preview an import file: detected format, record counts and validity.

    Args:
        file_path: File to analyze
        format: Format hint (detected from extension/content when omitted)

    Returns:
        Analysis of the file; nothing is written
    """
    if not import_analyzer:
        raise RuntimeError("Services not initialized")
    return await data_transfer_tools.analyze_import_file(
        import_analyzer, file_path, format, allowed_paths=_allowed_paths()
    )


@mcp.tool()
async def get_export_stats() -> dict[str, Any]:
    """Count stored records per type.

    Returns:
        gamesCount, playSessionsCount, uploadsCount, chaptersCount, memosCount
    """
    if not export_service:
        raise RuntimeError("Services not initialized")
    return await data_transfer_tools.get_export_stats(export_service)


def create_server() -> FastMCP:
    """Create and return MCP server instance.

    Returns:
        FastMCP server instance
    """
    return mcp
