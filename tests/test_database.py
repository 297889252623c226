"""Tests for the Database lifecycle and statement execution."""

import logging

import pytest

from gamelog.database import Database
from gamelog.errors import (
    ConstraintError,
    InitializationError,
    UninitializedAccessError,
    UnknownTableError,
    UnsupportedPredicateError,
)
from gamelog.migrations import MigrationRunner
from gamelog.query_executor import AlterResult, DeleteResult, InsertResult, UpdateResult


@pytest.fixture
def db():
    database = Database()
    database.initialize()
    yield database
    database.close()


def add_game(db, title, **extra):
    data = {"title": title, "created_at": "2024-01-01T00:00:00.000Z", "updated_at": "2024-01-01T00:00:00.000Z"}
    data.update(extra)
    return db.insert("game", data)


class TestLifecycle:
    """Tests for initialization and teardown."""

    def test_query_before_initialize(self):
        db = Database()
        assert not db.initialized
        with pytest.raises(UninitializedAccessError):
            db.query("SELECT * FROM game")

    def test_initialize_creates_tables(self, db):
        assert db.initialized
        assert db.storage.list_tables() == ["game", "game_session"]

    def test_initialize_resets_store(self, db):
        add_game(db, "Celeste")
        db.initialize()
        assert db.query("SELECT * FROM game") == []

    def test_close(self, db):
        db.close()
        assert not db.initialized
        with pytest.raises(UninitializedAccessError):
            db.execute("SELECT * FROM game")

    def test_initialization_failure(self, monkeypatch):
        def broken(self):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(MigrationRunner, "ensure_schema", broken)
        db = Database()
        with pytest.raises(InitializationError) as exc_info:
            db.initialize()
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert not db.initialized

    def test_context_manager(self):
        with Database() as db:
            assert db.initialized
        assert not db.initialized

    def test_databases_are_independent(self, db):
        other = Database()
        other.initialize()
        add_game(db, "Celeste")
        assert other.query("SELECT * FROM game") == []


class TestInsertAndSelect:
    """Tests for INSERT and SELECT."""

    def test_round_trip(self, db):
        game_id = add_game(db, "Celeste", platform="Switch", rating=9, hours=12.5)
        row = db.get_first("SELECT * FROM game WHERE id = ?", [game_id])
        assert row["title"] == "Celeste"
        assert row["platform"] == "Switch"
        assert row["rating"] == 9
        assert row["hours"] == 12.5
        assert row["status"] == "backlog"
        assert row["deleted"] == 0

    def test_round_trip_keeps_undeclared_fields(self, db):
        db.execute(
            "INSERT INTO game (title, created_at, updated_at, mood) VALUES (?, ?, ?, ?)",
            ["A", "t", "t", "happy"],
        )
        row = db.get_first("SELECT * FROM game WHERE title = ?", ["A"])
        assert row["mood"] == "happy"
        assert row["title"] == "A"
        assert row["genre"] is None

    def test_insert_result(self, db):
        result = db.execute(
            "INSERT INTO game (title, created_at, updated_at) VALUES (?, ?, ?)",
            ["Hades", "t", "t"],
        )
        assert isinstance(result, InsertResult)
        assert result.row_id == 1
        assert result.table == "game"

    def test_ids_strictly_increase(self, db):
        first = add_game(db, "A")
        second = add_game(db, "B")
        db.execute("DELETE FROM game WHERE id = ?", [second])
        third = add_game(db, "C")
        assert first < second < third

    def test_insert_missing_not_null(self, db):
        with pytest.raises(ConstraintError):
            db.execute("INSERT INTO game (title) VALUES ('no timestamps')")

    def test_insert_unknown_table(self, db):
        with pytest.raises(UnknownTableError):
            db.execute("INSERT INTO nope (a) VALUES (1)")

    def test_select_unknown_table_is_empty(self, db):
        result = db.execute("SELECT * FROM nope")
        assert result.rows == []
        assert "nope" in result.message

    def test_select_projection_and_alias(self, db):
        add_game(db, "Celeste")
        rows = db.query("SELECT id, title AS name FROM game")
        assert rows == [{"id": 1, "name": "Celeste"}]

    def test_select_order_limit_offset(self, db):
        for title, hours in (("B", 3), ("A", 1), ("C", 2)):
            add_game(db, title, hours=hours)
        rows = db.query("SELECT title FROM game ORDER BY hours DESC LIMIT 2 OFFSET 1")
        assert [r["title"] for r in rows] == ["C", "A"]

    def test_order_nulls_last(self, db):
        add_game(db, "Unrated")
        add_game(db, "Rated", rating=5)
        rows = db.query("SELECT title FROM game ORDER BY rating")
        assert [r["title"] for r in rows] == ["Rated", "Unrated"]

    def test_last_insert_rowid(self, db):
        add_game(db, "A")
        add_game(db, "B")
        assert db.get_first("SELECT last_insert_rowid()") == {"id": 2}
        assert db.get_first("SELECT last_insert_rowid() AS new_id") == {"new_id": 2}

    def test_last_insert_rowid_across_tables(self, db):
        for title in ("A", "B", "C"):
            add_game(db, title)
        db.insert("game_session", {"game_id": 1, "minutes": 30, "played_at": "t", "created_at": "t"})
        assert db.get_first("SELECT last_insert_rowid()") == {"id": 3}

    def test_insert_helper_drops_none(self, db):
        game_id = add_game(db, "Celeste", status=None, rating=None)
        row = db.get_first("SELECT * FROM game WHERE id = ?", [game_id])
        assert row["status"] == "backlog"
        assert row.get("rating") is None


class TestUpdateAndDelete:
    """Tests for UPDATE and DELETE."""

    def test_update_only_touches_match(self, db):
        add_game(db, "Celeste", status="playing")
        add_game(db, "Hades", status="backlog")
        before = db.get_first("SELECT * FROM game WHERE id = ?", [2])

        affected = db.update("game", {"status": "completed", "rating": 10}, "id = ?", [1])
        assert affected == 1

        assert db.get_first("SELECT * FROM game WHERE id = ?", [1])["status"] == "completed"
        assert db.get_first("SELECT * FROM game WHERE id = ?", [2]) == before

    def test_update_result(self, db):
        add_game(db, "Celeste")
        result = db.execute("UPDATE game SET notes = 'fun' WHERE title = 'Celeste'")
        assert isinstance(result, UpdateResult)
        assert result.affected == 1

    def test_update_unknown_table(self, db):
        with pytest.raises(UnknownTableError):
            db.execute("UPDATE nope SET a = 1")

    def test_update_compound_where(self, db):
        add_game(db, "Celeste")
        with pytest.raises(UnsupportedPredicateError):
            db.update("game", {"rating": 1}, "id = ? AND title = ?", [1, "Celeste"])
        assert db.get_first("SELECT * FROM game WHERE id = 1").get("rating") is None

    def test_update_not_null(self, db):
        add_game(db, "Celeste")
        with pytest.raises(ConstraintError):
            db.execute("UPDATE game SET title = NULL WHERE id = 1")

    def test_delete(self, db):
        add_game(db, "Celeste")
        add_game(db, "Hades")
        result = db.execute("DELETE FROM game WHERE id = ?", [1])
        assert isinstance(result, DeleteResult)
        assert result.affected == 1
        assert [r["title"] for r in db.query("SELECT * FROM game")] == ["Hades"]

    def test_delete_missing_id(self, db):
        add_game(db, "Celeste")
        result = db.execute("DELETE FROM game WHERE id = ?", [99])
        assert result.affected == 0
        assert len(db.query("SELECT * FROM game")) == 1


class TestIntrospection:
    """Tests for table existence, PRAGMA and ALTER TABLE."""

    def test_table_exists(self, db):
        sql = "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?"
        assert db.query(sql, ["game"]) == [{"name": "game"}]
        assert db.query(sql, ["nope"]) == []

    def test_table_exists_literal(self, db):
        rows = db.query("SELECT name FROM sqlite_master WHERE type='table' AND name='game_session'")
        assert rows == [{"name": "game_session"}]

    def test_table_info(self, db):
        rows = db.query("PRAGMA table_info(game)")
        by_name = {r["name"]: r for r in rows}
        assert rows[0] == {"cid": 0, "name": "id", "type": "INTEGER", "notnull": 0, "dflt_value": None, "pk": 1}
        assert by_name["status"]["dflt_value"] == "backlog"
        assert by_name["status"]["notnull"] == 1
        assert [r["cid"] for r in rows] == list(range(len(rows)))

    def test_table_info_unknown_table(self, db):
        assert db.query("PRAGMA table_info(nope)") == []

    def test_other_pragma(self, db, caplog):
        with caplog.at_level(logging.WARNING):
            assert db.query("PRAGMA foreign_keys = ON") == []
        assert "foreign_keys" in caplog.text

    def test_alter_add_column_backfills(self, db):
        add_game(db, "Celeste")
        result = db.execute("ALTER TABLE game ADD COLUMN mood TEXT NOT NULL DEFAULT 'happy'")
        assert isinstance(result, AlterResult)
        assert result.added
        assert db.get_first("SELECT mood FROM game") == {"mood": "happy"}

    def test_alter_existing_column(self, db):
        result = db.execute("ALTER TABLE game ADD COLUMN title TEXT")
        assert not result.added

    def test_alter_unknown_table(self, db, caplog):
        with caplog.at_level(logging.WARNING):
            result = db.execute("ALTER TABLE nope ADD COLUMN a TEXT")
        assert not result.added
        assert "nope" in caplog.text


class TestStatementHandling:
    """Tests for text that is not a supported statement."""

    def test_unhandled_statement(self, db, caplog):
        with caplog.at_level(logging.WARNING):
            assert db.query("VACUUM") == []
        assert "Unhandled statement" in caplog.text

    @pytest.mark.parametrize(
        "sql, params",
        [
            ("ALTER TABLE game RENAME TO games", None),
            ("INSERT OR REPLACE INTO game (title) VALUES (?)", ["x"]),
            ("SELECT COUNT(*) FROM game", None),
            ("SELECT FROM game", None),
        ],
    )
    def test_unsupported_form_of_known_keyword(self, db, caplog, sql, params):
        """Known keywords in unsupported forms degrade to an empty result."""
        with caplog.at_level(logging.WARNING):
            result = db.execute(sql, params)
        assert result.rows == []
        assert result.message.startswith("Unhandled statement")
        assert "Unhandled statement" in caplog.text
        assert db.storage.list_tables() == ["game", "game_session"]
        assert db.query("SELECT * FROM game") == []

    def test_migrate_live_store(self, db):
        assert not db.migrate().changed
