"""Tests for the file-boundary MCP tools."""

import json

import pytest

from cloudlaunch_data.models.records import EntityType
from cloudlaunch_data.tools import data_transfer_tools


class TestDataExportTool:
    """Test data_export."""

    @pytest.mark.asyncio
    async def test_writes_named_file(self, export_service, populated_store, tmp_path):
        """The export lands in the directory under the conventional name."""
        result = await data_transfer_tools.data_export(
            export_service,
            "json",
            str(tmp_path / "exports"),
            include_games=True,
            allowed_paths=[tmp_path],
        )

        assert "error" not in result
        assert result["format"] == "json"
        written = tmp_path / "exports" / result["file_path"].rsplit("/", 1)[-1]
        assert written.name.startswith("cloudlaunch_export_")
        assert written.suffix == ".json"
        assert ":" not in written.name
        document = json.loads(written.read_text(encoding="utf-8"))
        assert list(document["data"]) == ["games"]
        assert result["file_size_bytes"] == len(written.read_bytes())

    @pytest.mark.asyncio
    async def test_unsupported_format(self, export_service, tmp_path):
        """Unsupported formats become a FormatError response and no file."""
        result = await data_transfer_tools.data_export(
            export_service, "xml", str(tmp_path), include_games=True, allowed_paths=[tmp_path]
        )

        assert result["error"] is True
        assert result["error_type"] == "FormatError"
        assert result["message"] == "Unsupported format: xml"
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_path_traversal(self, export_service, tmp_path):
        """Paths containing '..' are rejected."""
        result = await data_transfer_tools.data_export(
            export_service, "csv", str(tmp_path / ".." / "elsewhere"), allowed_paths=[tmp_path]
        )

        assert result["error_type"] == "ValidationError"
        assert "traversal" in result["message"]

    @pytest.mark.asyncio
    async def test_output_dir_required(self, export_service):
        """An empty directory is a validation error."""
        result = await data_transfer_tools.data_export(export_service, "csv", "")
        assert result["error_type"] == "ValidationError"


class TestDataImportTool:
    """Test data_import and analyze_import_file."""

    @pytest.mark.asyncio
    async def test_imports_valid_file(self, import_service, import_analyzer, record_store, tmp_path):
        """A structurally valid file is analyzed, then imported."""
        path = tmp_path / "library.csv"
        path.write_text(
            "# GAMES\nid,title,exePath\ng1,First,/a.exe\ng2,,/b.exe\n", encoding="utf-8"
        )

        result = await data_transfer_tools.data_import(
            import_service, import_analyzer, str(path), allowed_paths=[tmp_path]
        )

        assert result["imported"] is True
        assert result["analysis"]["format"] == "csv"
        assert result["analysis"]["recordCounts"] == {"games": 2}
        assert result["import_result"]["totalRecords"] == 2
        assert result["import_result"]["successfulImports"] == 1
        assert result["import_result"]["errors"][0]["path"] == "games[1].title"
        assert await record_store.count(EntityType.GAME) == 1

    @pytest.mark.asyncio
    async def test_invalid_structure_is_not_imported(self, import_service, import_analyzer, tmp_path):
        """Files that fail to decode are reported and left unimported."""
        path = tmp_path / "broken.json"
        path.write_text('{"version": "1.0"}', encoding="utf-8")

        result = await data_transfer_tools.data_import(
            import_service, import_analyzer, str(path), allowed_paths=[tmp_path]
        )

        assert result["imported"] is False
        assert result["import_result"] is None
        assert result["analysis"]["hasValidStructure"] is False

    @pytest.mark.asyncio
    async def test_missing_file(self, import_service, import_analyzer, tmp_path):
        """A missing file is an IOError response."""
        result = await data_transfer_tools.data_import(
            import_service, import_analyzer, str(tmp_path / "nope.json"), allowed_paths=[tmp_path]
        )

        assert result["error"] is True
        assert result["error_type"] == "IOError"

    @pytest.mark.asyncio
    async def test_invalid_mode(self, import_service, import_analyzer, tmp_path):
        """Only merge and replace are accepted."""
        result = await data_transfer_tools.data_import(
            import_service, import_analyzer, str(tmp_path / "x.json"), mode="upsert"
        )
        assert result["error_type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_unsupported_explicit_format(self, import_service, import_analyzer, tmp_path):
        """An explicit unsupported format is rejected before reading."""
        result = await data_transfer_tools.data_import(
            import_service, import_analyzer, str(tmp_path / "x.xml"), format="xml"
        )
        assert result["error_type"] == "FormatError"

    @pytest.mark.asyncio
    async def test_analyze_only(self, import_analyzer, record_store, tmp_path):
        """Analysis reports counts and writes nothing."""
        path = tmp_path / "dump.sql"
        path.write_text("INSERT INTO games (id, title, exePath) VALUES ('g1', 'A', 'a');\n", encoding="utf-8")

        result = await data_transfer_tools.analyze_import_file(
            import_analyzer, str(path), allowed_paths=[tmp_path]
        )

        assert result["format"] == "sql"
        assert result["recordCounts"] == {"games": 1}
        assert result["hasValidStructure"] is True
        assert await record_store.count(EntityType.GAME) == 0


class TestExportStatsTool:
    """Test get_export_stats."""

    @pytest.mark.asyncio
    async def test_counts(self, export_service, populated_store):
        result = await data_transfer_tools.get_export_stats(export_service)

        assert result == {
            "gamesCount": 2,
            "playSessionsCount": 1,
            "uploadsCount": 1,
            "chaptersCount": 1,
            "memosCount": 1,
        }
