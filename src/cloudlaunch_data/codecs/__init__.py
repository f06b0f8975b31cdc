"""File format codecs."""

from cloudlaunch_data.codecs.base import FormatCodec
from cloudlaunch_data.codecs.csv_codec import CsvCodec
from cloudlaunch_data.codecs.json_codec import JsonCodec
from cloudlaunch_data.codecs.sql_codec import SqlCodec
from cloudlaunch_data.exceptions import FormatError
from cloudlaunch_data.models.export_import import DataFormat

_CODECS: dict[DataFormat, type[FormatCodec]] = {
    DataFormat.JSON: JsonCodec,
    DataFormat.CSV: CsvCodec,
    DataFormat.SQL: SqlCodec,
}


def get_codec(format: "str | DataFormat") -> FormatCodec:
    """Get the codec for a format value.

    Args:
        format: Format name ("json", "csv", "sql") or DataFormat

    Returns:
        Codec instance

    Raises:
        FormatError: If the format is not supported
    """
    data_format = DataFormat.parse(format)
    if data_format is None:
        raise FormatError(f"Unsupported format: {format}")
    return _CODECS[data_format]()


__all__ = ["FormatCodec", "JsonCodec", "CsvCodec", "SqlCodec", "get_codec"]
