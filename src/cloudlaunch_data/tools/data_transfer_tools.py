"""Data export/import MCP tools.

These functions sit at the file boundary: they read and write files, and
turn pipeline errors into error response dicts.
"""

import logging
from pathlib import Path
from typing import Any

import aiofiles

from cloudlaunch_data.exceptions import DataTransferError, StoreError
from cloudlaunch_data.models.export_import import DataFormat, ExportOptions, ImportOptions
from cloudlaunch_data.services.export_service import ExportService, build_export_filename
from cloudlaunch_data.services.import_analyzer import ImportAnalyzer
from cloudlaunch_data.services.import_service import ImportService
from cloudlaunch_data.tools import create_error_response, error_response_for

logger = logging.getLogger(__name__)


def _validate_safe_path(file_path: str, allowed_paths: list[Path] | None = None) -> Path:
    """Validate that a path is within the working directory or an allowed base.

    Args:
        file_path: User-provided file or directory path
        allowed_paths: Additional allowed base directories

    Returns:
        Resolved absolute Path

    Raises:
        ValueError: If the path uses traversal or is outside every allowed base
    """
    if ".." in Path(file_path).parts:
        raise ValueError(f"Path traversal detected in {file_path}")

    path_resolved = Path(file_path).resolve()
    allowed_bases = [Path.cwd().resolve(), *(p.resolve() for p in allowed_paths or [])]

    for base in allowed_bases:
        if path_resolved.is_relative_to(base):
            return path_resolved

    raise ValueError(f"Path {file_path} is outside allowed directory")


async def data_export(
    service: ExportService,
    format: str,
    output_dir: str,
    include_games: bool = False,
    include_play_sessions: bool = False,
    include_uploads: bool = False,
    include_chapters: bool = False,
    include_memos: bool = False,
    file_prefix: str = "cloudlaunch",
    allowed_paths: list[Path] | None = None,
) -> dict[str, Any]:
    """Export selected record types to a new file in a directory.

    Args:
        service: Export service instance
        format: Output format (json/csv/sql)
        output_dir: Directory the export file is written to
        include_games: Export games
        include_play_sessions: Export play sessions
        include_uploads: Export uploads
        include_chapters: Export chapters
        include_memos: Export memos
        file_prefix: Product prefix of the file name
        allowed_paths: Additional allowed base directories

    Returns:
        Written file path, format and size
    """
    if not output_dir:
        return create_error_response(
            message="output_dir is required",
            error_type="ValidationError",
        )

    options = ExportOptions(
        format=format,
        include_games=include_games,
        include_play_sessions=include_play_sessions,
        include_uploads=include_uploads,
        include_chapters=include_chapters,
        include_memos=include_memos,
    )

    try:
        directory = _validate_safe_path(output_dir, allowed_paths)
        text = await service.export_data(options)

        directory.mkdir(parents=True, exist_ok=True)
        output_path = directory / build_export_filename(file_prefix, format)
        async with aiofiles.open(output_path, "w", encoding="utf-8") as f:
            await f.write(text)
    except (DataTransferError, ValueError, OSError) as e:
        logger.error("Export failed: %s", e)
        return error_response_for(e)

    logger.info("Wrote export file %s", output_path)
    return {
        "file_path": str(output_path),
        "format": DataFormat.parse(format).value,
        "file_size_bytes": len(text.encode("utf-8")),
    }


async def _read_import_file(file_path: str, allowed_paths: list[Path] | None) -> tuple[Path, str]:
    path = _validate_safe_path(file_path, allowed_paths)
    async with aiofiles.open(path, encoding="utf-8") as f:
        return path, await f.read()


async def analyze_import_file(
    analyzer: ImportAnalyzer,
    file_path: str,
    format: str | None = None,
    allowed_paths: list[Path] | None = None,
) -> dict[str, Any]:
    """Preview an import file without writing anything.

    Args:
        analyzer: Import analyzer instance
        file_path: File to analyze
        format: Format hint (detected from extension/content when omitted)
        allowed_paths: Additional allowed base directories

    Returns:
        Detected format, record counts and structural validity
    """
    try:
        path, text = await _read_import_file(file_path, allowed_paths)
    except (ValueError, OSError) as e:
        return error_response_for(e)

    analysis = analyzer.analyze_import_file(text, format, filename=path.name)
    return {"file_path": str(path), **analysis.model_dump(mode="json", by_alias=True)}


async def data_import(
    import_service: ImportService,
    analyzer: ImportAnalyzer,
    file_path: str,
    format: str | None = None,
    mode: str = "merge",
    include_games: bool = True,
    include_play_sessions: bool = True,
    include_uploads: bool = True,
    include_chapters: bool = True,
    include_memos: bool = True,
    allowed_paths: list[Path] | None = None,
) -> dict[str, Any]:
    """Analyze an import file, then import it if its structure is valid.

    Args:
        import_service: Import service instance
        analyzer: Import analyzer instance
        file_path: File to import
        format: Format (detected from extension/content when omitted)
        mode: Import mode (merge/replace)
        include_games: Import games
        include_play_sessions: Import play sessions
        include_uploads: Import uploads
        include_chapters: Import chapters
        include_memos: Import memos
        allowed_paths: Additional allowed base directories

    Returns:
        File analysis and, when imported, the import result
    """
    if not file_path:
        return create_error_response(
            message="file_path is required",
            error_type="ValidationError",
        )

    if mode not in ["merge", "replace"]:
        return create_error_response(
            message="mode must be 'merge' or 'replace'",
            error_type="ValidationError",
        )

    if format is not None and DataFormat.parse(format) is None:
        return create_error_response(
            message=f"Unsupported format: {format}",
            error_type="FormatError",
        )

    try:
        path, text = await _read_import_file(file_path, allowed_paths)
    except (ValueError, OSError) as e:
        return error_response_for(e)

    analysis = analyzer.analyze_import_file(text, format, filename=path.name)
    response: dict[str, Any] = {
        "file_path": str(path),
        "analysis": analysis.model_dump(mode="json", by_alias=True),
        "imported": False,
        "import_result": None,
    }
    if not analysis.has_valid_structure:
        return response

    options = ImportOptions(
        format=analysis.format.value,
        mode=mode,
        include_games=include_games,
        include_play_sessions=include_play_sessions,
        include_uploads=include_uploads,
        include_chapters=include_chapters,
        include_memos=include_memos,
    )
    try:
        result = await import_service.import_data(text, options)
    except DataTransferError as e:
        logger.error("Import of %s failed: %s", path, e)
        return error_response_for(e)

    response["imported"] = True
    response["import_result"] = result.model_dump(mode="json", by_alias=True)
    return response


async def get_export_stats(service: ExportService) -> dict[str, Any]:
    """Count stored records per type.

    Args:
        service: Export service instance

    Returns:
        Record counts per type
    """
    try:
        stats = await service.get_export_stats()
    except StoreError as e:
        return error_response_for(e)
    return stats.model_dump(mode="json", by_alias=True)
