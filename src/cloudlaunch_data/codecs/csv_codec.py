"""Sectioned CSV codec.

Layout: for each entity type a `# <NAME>` header line, a row of field names,
then one row per record. Values containing a comma, double quote or line
break are double-quoted with embedded quotes doubled; None is an empty field.
"""

import csv
import io
from typing import Any

from cloudlaunch_data.codecs.base import FormatCodec, iter_sections, wire_record
from cloudlaunch_data.exceptions import StructuralError
from cloudlaunch_data.models.export_import import DataFormat, DecodedPayload, ExportBundle
from cloudlaunch_data.validation.schemas import collection_name_for

_SPECIAL_CHARACTERS = (",", '"', "\n", "\r")


def escape_csv_value(value: Any) -> str:
    """Render one field value."""
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    if any(ch in text for ch in _SPECIAL_CHARACTERS):
        return '"' + text.replace('"', '""') + '"'
    return text


def _is_section_header(row: list[str]) -> bool:
    return len(row) == 1 and row[0].lstrip().startswith("#")


class CsvCodec(FormatCodec):
    """Encodes all selected entity types into one sectioned CSV document."""

    format = DataFormat.CSV
    file_extension = "csv"

    def encode(self, bundle: ExportBundle) -> str:
        sections: list[str] = []
        for schema, records in iter_sections(bundle):
            lines = [f"# {schema.collection_name.upper()}", ",".join(schema.field_names)]
            for record in records:
                wire = wire_record(record)
                lines.append(
                    ",".join(escape_csv_value(wire.get(name)) for name in schema.field_names)
                )
            sections.append("\n".join(lines) + "\n")
        return "\n".join(sections)

    def decode(self, text: str) -> DecodedPayload:
        data: dict[str, list[dict[str, Any]]] = {}
        current: str | None = None
        headers: list[str] | None = None

        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        try:
            for row in reader:
                if not row or (len(row) == 1 and not row[0].strip()):
                    continue

                if _is_section_header(row):
                    name = row[0].strip()[1:].strip()
                    if not name:
                        raise StructuralError(
                            f"Empty section header at line {reader.line_num}"
                        )
                    current = collection_name_for(name.lower())
                    data.setdefault(current, [])
                    headers = None
                    continue

                if current is None:
                    raise StructuralError(
                        f"Line {reader.line_num}: data found before any section header"
                    )

                if headers is None:
                    headers = [cell.strip() for cell in row]
                    continue

                if len(row) != len(headers):
                    raise StructuralError(
                        f"Line {reader.line_num}: {current} row has {len(row)} values, "
                        f"expected {len(headers)}"
                    )

                data[current].append(
                    {header: (value if value != "" else None) for header, value in zip(headers, row)}
                )
        except csv.Error as e:
            raise StructuralError(f"Malformed CSV at line {reader.line_num}: {e}") from e

        if not data:
            raise StructuralError("No record sections found in CSV content")

        return DecodedPayload(format=self.format, data=data)
