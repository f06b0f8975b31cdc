"""Tests for the import service."""

import json

import pytest

from cloudlaunch_data.db.database import Database
from cloudlaunch_data.db.repositories.record_repository import SqliteRecordStore
from cloudlaunch_data.exceptions import FormatError, StoreError, StructuralError
from cloudlaunch_data.models.export_import import ExportOptions, ImportOptions
from cloudlaunch_data.models.records import EntityType
from cloudlaunch_data.services.export_service import ExportService
from cloudlaunch_data.services.import_service import ImportService


def _document(**collections) -> str:
    return json.dumps({"version": "1.0", "exportedAt": "2024-01-15T10:30:00Z", "data": collections})


def _game(game_id: str, title: str | None = "Imported Game") -> dict:
    return {"id": game_id, "title": title, "exePath": f"/games/{game_id}.exe"}


def _memo(memo_id: str, game_id: str) -> dict:
    return {"id": memo_id, "gameId": game_id, "title": "Note", "content": "text"}


class TestPartialImport:
    """Test that bad records are skipped without aborting the import."""

    @pytest.mark.asyncio
    async def test_second_game_missing_title(self, import_service, record_store):
        """One valid and one invalid game give a 2/1/1 result."""
        text = _document(games=[_game("g1"), _game("g2", title=None)])

        result = await import_service.import_data(text, ImportOptions(format="json"))

        assert result.total_records == 2
        assert result.successful_imports == 1
        assert result.skipped_records == 1
        assert len(result.errors) == 1
        assert result.errors[0].path == "games[1].title"
        assert await record_store.count(EntityType.GAME) == 1

    @pytest.mark.asyncio
    async def test_counts_always_balance(self, import_service):
        """total == successful + skipped and every skip has an error."""
        text = _document(
            games=[_game("g1"), {"id": "", "title": "", "exePath": ""}],
            memos=[_memo("m1", "g1"), _memo("m2", "missing"), {"id": "m3"}],
            achievements=[{"id": "a1"}],
        )

        result = await import_service.import_data(text, ImportOptions())

        assert result.total_records == 6
        assert result.total_records == result.successful_imports + result.skipped_records
        assert result.successful_imports == 2
        skipped_paths = {error.path.split("]")[0] for error in result.errors}
        assert skipped_paths == {"games[1", "memos[1", "memos[2", "achievements[0"}

    @pytest.mark.asyncio
    async def test_result_dumps_camel_case(self, import_service):
        """Results serialize with camelCase keys."""
        result = await import_service.import_data(_document(games=[_game("g1")]), ImportOptions())

        assert result.model_dump(by_alias=True) == {
            "totalRecords": 1,
            "successfulImports": 1,
            "skippedRecords": 0,
            "errors": [],
        }


class TestReferences:
    """Test parent game checks."""

    @pytest.mark.asyncio
    async def test_missing_parent_game(self, import_service, record_store):
        """Dependents of an unknown game are skipped."""
        result = await import_service.import_data(
            _document(memos=[_memo("m1", "nope")]), ImportOptions()
        )

        assert result.skipped_records == 1
        assert result.errors[0].code == "missing_reference"
        assert result.errors[0].path == "memos[0].gameId"
        assert await record_store.count(EntityType.MEMO) == 0

    @pytest.mark.asyncio
    async def test_parent_imported_in_same_file(self, import_service):
        """Games are imported first, so dependents in the same file resolve."""
        text = _document(
            chapters=[{"id": "c1", "gameId": "g1", "name": "Prologue", "order": "0"}],
            games=[_game("g1")],
        )

        result = await import_service.import_data(text, ImportOptions())

        assert result.successful_imports == 2
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_parent_already_stored(self, populated_store):
        """Dependents of stored games import in merge mode."""
        service = ImportService(populated_store)

        result = await service.import_data(_document(memos=[_memo("m-new", "game-1")]), ImportOptions())

        assert result.successful_imports == 1


class TestMergeModes:
    """Test merge and replace."""

    @pytest.mark.asyncio
    async def test_merge_keeps_existing_records(self, populated_store):
        """Existing ids are left untouched and reported."""
        service = ImportService(populated_store)
        text = _document(games=[_game("game-1", title="Overwritten"), _game("g3")])

        result = await service.import_data(text, ImportOptions(mode="merge"))

        assert result.successful_imports == 1
        assert result.skipped_records == 1
        assert result.errors[0].code == "already_exists"
        assert result.errors[0].path == "games[0].id"
        games = {game.id: game for game in await populated_store.list_all(EntityType.GAME)}
        assert games["game-1"].title == "Test, Game With Comma"
        assert "g3" in games

    @pytest.mark.asyncio
    async def test_duplicate_ids_within_file(self, import_service):
        """A second record with the same id is skipped."""
        result = await import_service.import_data(
            _document(games=[_game("g1"), _game("g1", title="Again")]), ImportOptions()
        )

        assert result.successful_imports == 1
        assert result.errors[0].code == "already_exists"

    @pytest.mark.asyncio
    async def test_replace_clears_selected_types_only(self, populated_store):
        """Replace clears the imported types and leaves others alone."""
        service = ImportService(populated_store)

        result = await service.import_data(
            _document(memos=[_memo("m-new", "game-2")]), ImportOptions(mode="replace")
        )

        assert result.successful_imports == 1
        memos = await populated_store.list_all(EntityType.MEMO)
        assert [memo.id for memo in memos] == ["m-new"]
        assert await populated_store.count(EntityType.GAME) == 2
        assert await populated_store.count(EntityType.CHAPTER) == 1

    @pytest.mark.asyncio
    async def test_replace_games_keeps_unselected_types(self, populated_store):
        """Replacing games never removes memos or sessions the caller excluded."""
        service = ImportService(populated_store)
        options = ImportOptions(
            mode="replace",
            include_play_sessions=False,
            include_uploads=False,
            include_chapters=False,
            include_memos=False,
        )

        result = await service.import_data(_document(games=[_game("game-1", title="Fresh")]), options)

        assert result.successful_imports == 1
        assert result.errors == []
        games = await populated_store.list_all(EntityType.GAME)
        assert [(game.id, game.title) for game in games] == [("game-1", "Fresh")]
        assert await populated_store.count(EntityType.MEMO) == 1
        assert await populated_store.count(EntityType.PLAY_SESSION) == 1
        assert await populated_store.count(EntityType.UPLOAD) == 1
        assert await populated_store.count(EntityType.CHAPTER) == 1

    @pytest.mark.asyncio
    async def test_replace_keeps_referenced_games_absent_from_file(self, populated_store):
        """A stored game that dependents still point at survives a games-only replace."""
        service = ImportService(populated_store)

        result = await service.import_data(
            _document(games=[_game("game-3")]), ImportOptions(mode="replace")
        )

        assert result.successful_imports == 1
        ids = {game.id for game in await populated_store.list_all(EntityType.GAME)}
        assert ids == {"game-1", "game-3"}
        assert await populated_store.count(EntityType.MEMO) == 1

    @pytest.mark.asyncio
    async def test_replace_with_dependents_clears_everything_selected(self, populated_store):
        """Replacing games together with all their dependents starts from scratch."""
        service = ImportService(populated_store)
        text = _document(
            games=[_game("g-new")],
            playSessions=[],
            uploads=[],
            chapters=[],
            memos=[_memo("m-new", "g-new")],
        )

        result = await service.import_data(text, ImportOptions(mode="replace"))

        assert result.successful_imports == 2
        assert [game.id for game in await populated_store.list_all(EntityType.GAME)] == ["g-new"]
        assert [memo.id for memo in await populated_store.list_all(EntityType.MEMO)] == ["m-new"]
        assert await populated_store.count(EntityType.PLAY_SESSION) == 0

    @pytest.mark.asyncio
    async def test_replace_rejects_duplicate_ids_within_file(self, populated_store):
        """Overwriting a stored record happens once per call; repeats are skipped."""
        service = ImportService(populated_store)
        text = _document(games=[_game("game-1", title="First"), _game("game-1", title="Second")])

        result = await service.import_data(text, ImportOptions(mode="replace"))

        assert result.successful_imports == 1
        assert result.errors[0].code == "already_exists"
        assert result.errors[0].path == "games[1].id"
        games = {game.id: game for game in await populated_store.list_all(EntityType.GAME)}
        assert games["game-1"].title == "First"

    @pytest.mark.asyncio
    async def test_excluded_types_are_ignored(self, import_service, record_store):
        """Excluded collections are neither imported nor counted."""
        text = _document(games=[_game("g1")], memos=[_memo("m1", "g1")])

        result = await import_service.import_data(text, ImportOptions(include_memos=False))

        assert result.total_records == 1
        assert await record_store.count(EntityType.MEMO) == 0


class TestImportErrors:
    """Test fatal errors."""

    @pytest.mark.asyncio
    async def test_unsupported_format(self, mock_store):
        """An unsupported format fails before the store is touched."""
        service = ImportService(mock_store)

        with pytest.raises(FormatError, match="Unsupported format: xml"):
            await service.import_data(_document(games=[_game("g1")]), ImportOptions(format="xml"))

        mock_store.insert.assert_not_called()
        mock_store.exists.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_data_key(self, import_service, record_store):
        """A structural error aborts with no partial result."""
        with pytest.raises(StructuralError):
            await import_service.import_data('{"version": "1.0"}', ImportOptions(format="json"))

        assert await record_store.count(EntityType.GAME) == 0

    @pytest.mark.asyncio
    async def test_store_error_rolls_back(self, record_store, monkeypatch):
        """A failed insert undoes every write of the call."""
        original_insert = record_store.insert
        calls = 0

        async def failing_insert(entity_type, record):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise StoreError("disk full", entity_type=entity_type.value, record_id=record.id)
            await original_insert(entity_type, record)

        monkeypatch.setattr(record_store, "insert", failing_insert)
        service = ImportService(record_store)

        with pytest.raises(StoreError) as exc_info:
            await service.import_data(_document(games=[_game("g1"), _game("g2")]), ImportOptions())

        assert exc_info.value.record_id == "g2"
        assert await record_store.count(EntityType.GAME) == 0


class TestRoundTrip:
    """Test export followed by import into an empty store."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("format", ["json", "csv", "sql"])
    async def test_export_then_import(self, populated_store, sample_records, format):
        """Every exported record is imported unchanged."""
        text = await ExportService(populated_store).export_data(
            ExportOptions(
                format=format,
                include_games=True,
                include_play_sessions=True,
                include_uploads=True,
                include_chapters=True,
                include_memos=True,
            )
        )

        target_db = Database(":memory:")
        await target_db.connect()
        await target_db.migrate()
        try:
            target = SqliteRecordStore(target_db)
            result = await ImportService(target).import_data(text, ImportOptions(format=format))

            assert result.errors == []
            assert result.successful_imports == sum(len(r) for r in sample_records.values())
            for entity_type, records in sample_records.items():
                assert await target.list_all(entity_type) == records
        finally:
            await target_db.close()

    @pytest.mark.asyncio
    async def test_format_detected_when_omitted(self, import_service):
        """CSV content imports without an explicit format."""
        text = "# GAMES\nid,title,exePath\ng1,\"Game, The\",/games/g1.exe\n"

        result = await import_service.import_data(text, ImportOptions())

        assert result.successful_imports == 1
