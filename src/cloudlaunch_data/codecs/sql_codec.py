"""SQL INSERT statement codec.

Grammar accepted on decode is exactly what encode produces:

    -- comment
    INSERT INTO <table> (<column>, ...) VALUES (<literal>, ...);

where a literal is a single-quoted string with `''` for an embedded quote,
a bare number, or `NULL`. Anything else (double-quoted strings, backslash
escapes, other statements) is a format error.
"""

import re
from datetime import datetime, timezone
from typing import Any

from cloudlaunch_data.codecs.base import FormatCodec, iter_sections, wire_record
from cloudlaunch_data.exceptions import FormatError
from cloudlaunch_data.models.export_import import DataFormat, DecodedPayload, ExportBundle
from cloudlaunch_data.validation.schemas import collection_name_for

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_TABLE_COMMENT = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s+table\s*$", re.IGNORECASE)


def sql_literal(value: Any) -> str:
    """Render one value as a SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, datetime):
        value = value.isoformat()
    text = value if isinstance(value, str) else str(value)
    return "'" + text.replace("'", "''") + "'"


class _Scanner:
    """Cursor over SQL text with line tracking for error messages."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.table_comments: list[str] = []

    @property
    def line(self) -> int:
        return self.text.count("\n", 0, self.pos) + 1

    def fail(self, expected: str) -> FormatError:
        snippet = self.text[self.pos : self.pos + 20].split("\n", 1)[0]
        found = repr(snippet) if snippet else "end of input"
        return FormatError(f"SQL format error at line {self.line}: expected {expected}, found {found}")

    def skip_whitespace(self) -> None:
        while self.pos < len(self.text):
            if self.text[self.pos].isspace():
                self.pos += 1
            elif self.text.startswith("--", self.pos):
                end = self.text.find("\n", self.pos)
                end = len(self.text) if end == -1 else end
                match = _TABLE_COMMENT.match(self.text[self.pos + 2 : end])
                if match:
                    self.table_comments.append(match.group(1))
                self.pos = end
            else:
                break

    def at_end(self) -> bool:
        self.skip_whitespace()
        return self.pos >= len(self.text)

    def keyword(self, word: str) -> None:
        self.skip_whitespace()
        end = self.pos + len(word)
        candidate = self.text[self.pos : end]
        following = self.text[end : end + 1]
        if candidate.upper() != word or (following and (following.isalnum() or following == "_")):
            raise self.fail(word)
        self.pos = end

    def symbol(self, char: str) -> None:
        self.skip_whitespace()
        if not self.text.startswith(char, self.pos):
            raise self.fail(repr(char))
        self.pos += 1

    def peek(self, char: str) -> bool:
        self.skip_whitespace()
        return self.text.startswith(char, self.pos)

    def identifier(self) -> str:
        self.skip_whitespace()
        match = _IDENTIFIER.match(self.text, self.pos)
        if not match:
            raise self.fail("identifier")
        self.pos = match.end()
        return match.group(0)

    def literal(self) -> Any:
        self.skip_whitespace()
        if self.text.startswith("'", self.pos):
            return self._string()

        match = _IDENTIFIER.match(self.text, self.pos)
        if match and match.group(0).upper() == "NULL":
            self.pos = match.end()
            return None

        match = _NUMBER.match(self.text, self.pos)
        if match:
            following = self.text[match.end() : match.end() + 1]
            if following and (following.isalnum() or following == "_"):
                raise self.fail("literal")
            self.pos = match.end()
            token = match.group(0)
            if any(ch in token for ch in ".eE"):
                return float(token)
            return int(token)

        raise self.fail("literal")

    def _string(self) -> str:
        start_line = self.line
        self.pos += 1
        parts: list[str] = []
        while True:
            end = self.text.find("'", self.pos)
            if end == -1:
                raise FormatError(f"SQL format error: unterminated string starting at line {start_line}")
            parts.append(self.text[self.pos : end])
            if self.text.startswith("''", end):
                parts.append("'")
                self.pos = end + 2
                continue
            self.pos = end + 1
            return "".join(parts)

    def comma_separated(self, item) -> list[Any]:
        self.symbol("(")
        items = [item()]
        while self.peek(","):
            self.symbol(",")
            items.append(item())
        self.symbol(")")
        return items


class SqlCodec(FormatCodec):
    """Encodes records as INSERT statements, one per record."""

    format = DataFormat.SQL
    file_extension = "sql"

    def __init__(self, product_name: str = "CloudLaunch"):
        self.product_name = product_name

    def encode(self, bundle: ExportBundle) -> str:
        exported_at = bundle.exported_at or datetime.now(timezone.utc)
        lines = [
            f"-- {self.product_name} data export",
            f"-- Exported at: {exported_at.isoformat()}",
            "",
        ]
        for schema, records in iter_sections(bundle):
            columns = ", ".join(schema.field_names)
            lines.append(f"-- {schema.collection_name.upper()} table")
            for record in records:
                wire = wire_record(record)
                values = ", ".join(sql_literal(wire.get(name)) for name in schema.field_names)
                lines.append(
                    f"INSERT INTO {schema.collection_name} ({columns}) VALUES ({values});"
                )
            lines.append("")
        return "\n".join(lines)

    def decode(self, text: str) -> DecodedPayload:
        scanner = _Scanner(text)
        data: dict[str, list[dict[str, Any]]] = {}

        while not scanner.at_end():
            scanner.keyword("INSERT")
            scanner.keyword("INTO")
            table = collection_name_for(scanner.identifier().lower())
            columns = scanner.comma_separated(scanner.identifier)
            scanner.keyword("VALUES")
            values = scanner.comma_separated(scanner.literal)
            scanner.symbol(";")

            if len(columns) != len(values):
                raise FormatError(
                    f"SQL format error at line {scanner.line}: {len(columns)} columns "
                    f"but {len(values)} values for {table}"
                )
            data.setdefault(table, []).append(dict(zip(columns, values)))

        for name in scanner.table_comments:
            data.setdefault(collection_name_for(name.lower()), [])

        if not data:
            raise FormatError("SQL format error: no INSERT statements found")

        return DecodedPayload(format=self.format, data=data)
