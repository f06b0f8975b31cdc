"""Infer the format of an import file."""

import logging
from pathlib import PurePath

from cloudlaunch_data.models.export_import import DataFormat

logger = logging.getLogger(__name__)

EXTENSION_FORMATS: dict[str, DataFormat] = {
    ".json": DataFormat.JSON,
    ".csv": DataFormat.CSV,
    ".sql": DataFormat.SQL,
}


def detect_format(
    explicit: "str | DataFormat | None" = None,
    filename: str | None = None,
    content: str | None = None,
) -> DataFormat:
    """Resolve the format of a file from the strongest available signal.

    Precedence is an explicit format, then the filename extension, then
    the content: text whose first non-blank character is `{` is JSON and
    anything else is treated as CSV. Never raises; a wrong guess surfaces
    as a decode error in the codec.

    Args:
        explicit: Format given by the caller
        filename: File name or path
        content: File content

    Returns:
        Detected format
    """
    data_format = DataFormat.parse(explicit)
    if data_format is not None:
        return data_format
    if explicit is not None:
        logger.debug("Ignoring unrecognized format hint %r", explicit)

    if filename:
        data_format = EXTENSION_FORMATS.get(PurePath(filename).suffix.lower())
        if data_format is not None:
            return data_format

    if content is not None and content.lstrip().startswith("{"):
        return DataFormat.JSON
    return DataFormat.CSV
