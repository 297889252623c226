"""Tests for the command line and REPL helpers."""

import pytest

from gamelog.database import Database
from gamelog.errors import ValidationError
from gamelog.repl import _coerce_patch, _split_statements, format_value, main, run_builtin, run_file, run_repl
from gamelog.repository import GamesRepository


class TestSplitStatements:
    """Tests for splitting text into statements."""

    def test_split(self):
        assert _split_statements("SELECT * FROM a; SELECT * FROM b;") == [
            "SELECT * FROM a",
            "SELECT * FROM b",
        ]

    def test_semicolon_inside_string(self):
        statements = _split_statements("UPDATE game SET notes = 'a;b' WHERE id = 1; DELETE FROM game")
        assert statements == ["UPDATE game SET notes = 'a;b' WHERE id = 1", "DELETE FROM game"]

    def test_blank(self):
        assert _split_statements("  ;  ; ") == []


class TestFormatting:
    @pytest.mark.parametrize(
        "value, expected",
        [(None, "NULL"), (True, "true"), (3, "3"), (2.5, "2.5"), ("abc", "abc")],
    )
    def test_format_value(self, value, expected):
        assert format_value(value) == expected

    def test_truncate(self):
        assert format_value("x" * 50, max_width=10) == "xxxxxxx..."

    def test_coerce_patch(self):
        patch = _coerce_patch({"rating": "8", "hours": "1.5", "notes": "NULL", "title": "Hades"})
        assert patch == {"rating": 8, "hours": 1.5, "notes": None, "title": "Hades"}

    @pytest.mark.parametrize("patch", [{"rating": "abc"}, {"hours": "lots"}])
    def test_coerce_patch_bad_number(self, patch):
        with pytest.raises(ValidationError, match="must be a number"):
            _coerce_patch(patch)


class TestBuiltinCommands:
    """Tests for the REPL's built-in commands."""

    def test_unknown_command(self, capsys):
        db = Database()
        db.initialize()
        assert not run_builtin("vacuum", db, GamesRepository(db))
        assert capsys.readouterr().out == ""

    def test_stats(self, capsys):
        db = Database()
        db.initialize()
        assert run_builtin("stats", db, GamesRepository(db))
        assert "Games:          0" in capsys.readouterr().out

    def test_repl_survives_bad_status(self, monkeypatch, capsys):
        db = Database()
        db.initialize()
        db.execute(
            "INSERT INTO game (title, status, created_at, updated_at) "
            "VALUES ('A', 'wishlist', 't', 't')"
        )
        lines = iter(["stats", "exit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

        assert run_repl(db) == 0
        assert "Error: Game 1 has unknown status 'wishlist'" in capsys.readouterr().out


class TestCommandMode:
    """Tests for -c/--command."""

    def test_empty_select(self, capsys):
        assert main(["-c", "SELECT title FROM game"]) == 0
        assert "(no results)" in capsys.readouterr().out

    def test_select_sample_data(self, capsys):
        assert main(["--sample-data", "-c", "SELECT title FROM game WHERE status = 'playing'"]) == 0
        out = capsys.readouterr().out
        assert "Hollow Knight" in out
        assert "(1 row)" in out

    def test_several_statements(self, capsys):
        sql = (
            "INSERT INTO game (title, created_at, updated_at) VALUES ('Celeste', 't', 't');"
            "SELECT last_insert_rowid()"
        )
        assert main(["-c", sql]) == 0
        out = capsys.readouterr().out
        assert "Inserted 1 row into game" in out
        assert "(1 row)" in out

    def test_unparseable_statement_is_reported(self, capsys):
        assert main(["-c", "SELECT FROM"]) == 0
        assert "Error: Unhandled statement: Syntax error" in capsys.readouterr().out

    def test_unknown_table_error(self, capsys):
        assert main(["-c", "INSERT INTO nope (a) VALUES (1)"]) == 1
        assert "Table 'nope' does not exist" in capsys.readouterr().err


class TestGamesCommand:
    """Tests for the ``games`` subcommands."""

    def test_list_with_status(self, capsys):
        assert main(["--sample-data", "games", "list", "--status", "backlog"]) == 0
        out = capsys.readouterr().out
        assert "Stardew Valley" in out
        assert "Outer Wilds" in out
        assert "Elden Ring" not in out

    def test_add(self, capsys):
        assert main(["games", "add", "Celeste", "--status", "playing", "--hours", "12.5"]) == 0
        assert "Added game 1" in capsys.readouterr().out

    def test_add_invalid(self, capsys):
        assert main(["games", "add", "Celeste", "--status", "abandoned"]) == 1
        assert "Unknown status" in capsys.readouterr().err

    def test_update(self, capsys):
        assert main(["--sample-data", "games", "update", "1", "rating=8", "notes=NULL"]) == 0
        assert "Updated game 1" in capsys.readouterr().out

    def test_update_bad_number(self, capsys):
        assert main(["--sample-data", "games", "update", "1", "rating=abc"]) == 1
        assert "rating must be a number" in capsys.readouterr().err

    def test_update_missing(self, capsys):
        assert main(["games", "update", "5", "rating=8"]) == 1
        assert "Game 5 not found" in capsys.readouterr().err

    def test_delete(self, capsys):
        assert main(["--sample-data", "games", "delete", "2"]) == 0
        assert "Deleted game 2" in capsys.readouterr().out

    def test_stats(self, capsys):
        assert main(["--sample-data", "games", "stats"]) == 0
        assert "Games:          6" in capsys.readouterr().out

    def test_session(self, capsys):
        assert main(["--sample-data", "games", "session", "2", "30", "--note", "boss"]) == 0
        assert "Logged session 1" in capsys.readouterr().out

    def test_sessions_empty(self, capsys):
        assert main(["--sample-data", "games", "sessions", "2"]) == 0
        assert "(no results)" in capsys.readouterr().out


class TestRunFile:
    """Tests for executing statement files."""

    def test_run_file(self, tmp_path, capsys):
        script = tmp_path / "load.sql"
        script.write_text(
            "-- seed one game\n"
            "INSERT INTO game (title, created_at, updated_at)\n"
            "VALUES ('Celeste', 't', 't');\n"
            "SELECT title FROM game;\n"
        )
        db = Database()
        db.initialize()

        assert run_file(script, db, verbose=True) == 0
        out = capsys.readouterr().out
        assert ">>> INSERT INTO game (title, created_at, updated_at)" in out
        assert "... VALUES ('Celeste', 't', 't')" in out
        assert "Celeste" in out

    def test_run_file_error_stops(self, tmp_path, capsys):
        script = tmp_path / "bad.sql"
        script.write_text("UPDATE nope SET a = 1;\nSELECT * FROM game;\n")
        db = Database()
        db.initialize()

        assert run_file(script, db) == 1
        assert "does not exist" in capsys.readouterr().err

    def test_empty_file(self, tmp_path, capsys):
        script = tmp_path / "empty.sql"
        script.write_text("-- nothing here\n")
        db = Database()
        db.initialize()

        assert run_file(script, db) == 1
        assert "No statements" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["-f", str(tmp_path / "missing.sql")]) == 1
        assert "File not found" in capsys.readouterr().err
