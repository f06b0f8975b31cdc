"""Business logic services."""

from cloudlaunch_data.services.export_service import ExportService, build_export_filename
from cloudlaunch_data.services.format_detector import detect_format
from cloudlaunch_data.services.import_analyzer import ImportAnalyzer
from cloudlaunch_data.services.import_service import ImportService

__all__ = [
    "ExportService",
    "ImportAnalyzer",
    "ImportService",
    "build_export_filename",
    "detect_format",
]
