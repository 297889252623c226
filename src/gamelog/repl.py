"""Interactive REPL and command line for the gamelog store."""

from __future__ import annotations

import argparse
import logging
import readline  # noqa: F401 - enables line editing in input()
import sys
from pathlib import Path
from typing import Any

from gamelog.database import Database
from gamelog.errors import GamelogError, ValidationError
from gamelog.models import Game, GameFilters, LibraryStats
from gamelog.query_executor import AlterResult, DeleteResult, InsertResult, QueryResult, UpdateResult
from gamelog.repository import GamesRepository


# Columns shown by ``games list``
GAME_LIST_COLUMNS = ["id", "title", "platform", "status", "rating", "hours", "updated_at"]


def _split_statements(content: str) -> list[str]:
    """Split content into statements on semicolons outside string literals."""
    statements = []
    current = []
    quote: str | None = None

    for ch in content:
        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            continue

        if ch in ("'", '"'):
            quote = ch
            current.append(ch)
        elif ch == ";":
            stmt = "".join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
        else:
            current.append(ch)

    # Handle any remaining content
    stmt = "".join(current).strip()
    if stmt:
        statements.append(stmt)

    return statements


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a value for display.

    Args:
        value: The value to format
        max_width: Maximum character width before truncating
    """
    if value is None:
        return "NULL"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, float):
        return f"{value:.6g}"
    elif isinstance(value, int):
        return str(value)
    s = str(value)
    if len(s) > max_width:
        return s[:max_width - 3] + "..."
    return s


def print_result(result: QueryResult, max_width: int = 80) -> None:
    """Print query results in a formatted table."""
    if isinstance(result, (InsertResult, UpdateResult, DeleteResult, AlterResult)):
        if result.message:
            print(result.message)
        return
    elif result.message:
        print(f"Error: {result.message}")
        return

    if not result.rows:
        print("(no results)")
        return

    columns = result.columns or list(result.rows[0])

    # Calculate column widths
    col_widths = {col: len(col) for col in columns}
    for row in result.rows:
        for col in columns:
            col_widths[col] = max(col_widths[col], len(format_value(row.get(col))))

    # Cap column widths
    max_col_width = 40
    for col in col_widths:
        col_widths[col] = min(col_widths[col], max_col_width)

    header = " | ".join(col.ljust(col_widths[col])[:col_widths[col]] for col in columns)
    print(header)
    print("-" * min(len(header), max_width))

    for row in result.rows:
        values = []
        for col in columns:
            val = format_value(row.get(col))
            if len(val) > col_widths[col]:
                val = val[: col_widths[col] - 3] + "..."
            values.append(val.ljust(col_widths[col]))
        print(" | ".join(values))

    print(f"\n({len(result.rows)} row{'s' if len(result.rows) != 1 else ''})")


def print_games(games: list[Game]) -> None:
    """Print games as a result table."""
    rows = []
    for game in games:
        data = game.to_dict()
        rows.append({col: data[col] for col in GAME_LIST_COLUMNS})
    print_result(QueryResult(columns=GAME_LIST_COLUMNS, rows=rows))


def print_stats(stats: LibraryStats) -> None:
    print(f"Games:          {stats.total_games}")
    print(f"Hours played:   {stats.total_hours}")
    print(f"Average rating: {stats.average_rating} ({stats.games_with_rating} rated)")
    for status, count in stats.status_counts.items():
        print(f"  {status:<10} {count}")


def print_help() -> None:
    """Print REPL help."""
    print("""
Statements (terminate with ';'):
  SELECT * | col [AS alias], ... FROM table [WHERE col = value] [ORDER BY col [DESC]] [LIMIT n]
  INSERT INTO table (col, ...) VALUES (value, ...)
  UPDATE table SET col = value, ... [WHERE col = value]
  DELETE FROM table [WHERE col = value]
  ALTER TABLE table ADD COLUMN col TYPE [NOT NULL] [DEFAULT value]
  PRAGMA table_info(table)
  SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'game'
  SELECT last_insert_rowid()

Commands:
  tables    List tables
  sample    Add the sample games
  stats     Show library statistics
  help      Show this help
  exit      Quit
""")


def _execute_text(db: Database, text: str) -> None:
    for statement in _split_statements(text):
        print_result(db.execute(statement))


def run_file(file_path: Path, db: Database, verbose: bool = False) -> int:
    """Execute statements from a file.

    Args:
        file_path: Path to the file containing statements
        db: Initialized database to run them against
        verbose: If True, print each statement before executing

    Returns:
        0 on success, 1 on error
    """
    try:
        content = file_path.read_text()
    except OSError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return 1

    # Strip comment lines
    content = "\n".join(line for line in content.split("\n") if not line.strip().startswith("--"))
    statements = _split_statements(content)
    if not statements:
        print("No statements found in file", file=sys.stderr)
        return 1

    for statement in statements:
        if verbose:
            for i, line in enumerate(statement.split("\n")):
                prefix = ">>> " if i == 0 else "... "
                print(f"{prefix}{line}")
        try:
            print_result(db.execute(statement))
        except GamelogError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return 0


def run_builtin(command: str, db: Database, repo: GamesRepository) -> bool:
    """Run a built-in REPL command. Returns False if ``command`` is not one."""
    if command == "help":
        print_help()
    elif command == "tables":
        for name in db.storage.list_tables():
            print(name)
    elif command == "sample":
        ids = repo.add_sample_data()
        print(f"Added {len(ids)} sample games")
    elif command == "stats":
        print_stats(repo.stats())
    else:
        return False
    return True


def run_repl(db: Database) -> int:
    """Run the interactive REPL."""
    print("gamelog REPL - in-memory game library")
    print("Type 'help' for commands, 'exit' to quit.\n")

    repo = GamesRepository(db)
    buffer: list[str] = []

    while True:
        try:
            line = input("gamelog> " if not buffer else "    ...> ")
        except EOFError:
            print()
            break

        stripped = line.strip()
        if not buffer:
            command = stripped.lower()
            if not command:
                continue
            if command in ("exit", "quit"):
                break
            try:
                if run_builtin(command, db, repo):
                    continue
            except GamelogError as e:
                print(f"Error: {e}")
                continue

        buffer.append(line)
        if not stripped.endswith(";"):
            continue

        text = "\n".join(buffer)
        buffer = []
        try:
            _execute_text(db, text)
        except GamelogError as e:
            print(f"Error: {e}")
        print()

    return 0


def run_games_command(args: argparse.Namespace, db: Database) -> int:
    """Run one ``games`` subcommand against the repository."""
    repo = GamesRepository(db)

    if args.games_command == "list":
        filters = GameFilters(search=args.search or "", status=args.status, sort_by=args.sort)
        print_games(repo.list(filters))
    elif args.games_command == "add":
        data = {
            "title": args.title,
            "platform": args.platform,
            "genre": args.genre,
            "status": args.status,
            "rating": args.rating,
            "hours": args.hours,
            "release_year": args.release_year,
            "notes": args.notes,
        }
        game_id = repo.create(data)
        print(f"Added game {game_id}")
    elif args.games_command == "update":
        patch = {key: value for key, value in args.set}
        repo.update(args.id, _coerce_patch(patch))
        print(f"Updated game {args.id}")
    elif args.games_command == "delete":
        repo.delete(args.id)
        print(f"Deleted game {args.id}")
    elif args.games_command == "sample":
        ids = repo.add_sample_data()
        print(f"Added {len(ids)} sample games")
    elif args.games_command == "stats":
        print_stats(repo.stats())
    elif args.games_command == "session":
        session_id = repo.log_session(args.id, args.minutes, note=args.note)
        print(f"Logged session {session_id}")
    elif args.games_command == "sessions":
        rows = [vars(s) for s in repo.list_sessions(args.id)]
        print_result(QueryResult(columns=["id", "game_id", "minutes", "note", "played_at"], rows=rows))
    return 0


def _coerce_patch(patch: dict[str, str]) -> dict[str, Any]:
    """Turn ``key=value`` strings from the command line into typed values."""
    result: dict[str, Any] = {}
    for key, raw in patch.items():
        if raw.upper() == "NULL":
            result[key] = None
        elif key in ("rating", "release_year", "year", "deleted", "hours"):
            convert = float if key == "hours" else int
            try:
                result[key] = convert(raw)
            except ValueError:
                raise ValidationError(f"{key} must be a number, got '{raw}'") from None
        else:
            result[key] = raw
    return result


def _key_value(text: str) -> tuple[str, str]:
    if "=" not in text:
        raise argparse.ArgumentTypeError(f"expected key=value, got '{text}'")
    key, value = text.split("=", 1)
    return key.strip(), value.strip()


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    arg_parser = argparse.ArgumentParser(
        prog="gamelog",
        description="In-memory game library tracker with a small SQL interface",
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute statements and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute statements from a file and exit",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print each statement before executing (for -f/--file)",
    )
    arg_parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Seed the store with the sample games first",
    )
    arg_parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    sub = arg_parser.add_subparsers(dest="mode")
    games = sub.add_parser("games", help="Library operations")
    games_sub = games.add_subparsers(dest="games_command", required=True)

    list_parser = games_sub.add_parser("list", help="List games")
    list_parser.add_argument("--search", help="Case-insensitive text search")
    list_parser.add_argument("--status", default="all", help="Only games with this status")
    list_parser.add_argument(
        "--sort", choices=["updated", "title", "rating", "hours", "created"], help="Sort order"
    )

    add_parser = games_sub.add_parser("add", help="Add a game")
    add_parser.add_argument("title")
    add_parser.add_argument("--platform")
    add_parser.add_argument("--genre")
    add_parser.add_argument("--status")
    add_parser.add_argument("--rating", type=int)
    add_parser.add_argument("--hours", type=float)
    add_parser.add_argument("--release-year", type=int)
    add_parser.add_argument("--notes")

    update_parser = games_sub.add_parser("update", help="Update a game")
    update_parser.add_argument("id", type=int)
    update_parser.add_argument("set", nargs="+", type=_key_value, metavar="KEY=VALUE")

    delete_parser = games_sub.add_parser("delete", help="Delete a game")
    delete_parser.add_argument("id", type=int)

    games_sub.add_parser("sample", help="Add the sample games")
    games_sub.add_parser("stats", help="Show library statistics")

    session_parser = games_sub.add_parser("session", help="Log a play session")
    session_parser.add_argument("id", type=int)
    session_parser.add_argument("minutes", type=int)
    session_parser.add_argument("--note")

    sessions_parser = games_sub.add_parser("sessions", help="List play sessions of a game")
    sessions_parser.add_argument("id", type=int)

    return arg_parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    db = Database()
    try:
        db.initialize()
        if args.sample_data:
            GamesRepository(db).add_sample_data()

        if args.mode == "games":
            return run_games_command(args, db)

        if args.file:
            if not args.file.exists():
                print(f"Error: File not found: {args.file}", file=sys.stderr)
                return 1
            return run_file(args.file, db, args.verbose)

        if args.command:
            _execute_text(db, args.command)
            return 0

        return run_repl(db)
    except GamelogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
