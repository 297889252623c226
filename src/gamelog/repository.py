"""Repository facade translating library operations into statements."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from gamelog.database import Database
from gamelog.errors import NotFoundError, ValidationError
from gamelog.migrations import utc_now_iso
from gamelog.models import (
    Game,
    GameFilters,
    GameInput,
    GameSession,
    GameStatus,
    LibraryStats,
    SortOption,
)

logger = logging.getLogger(__name__)

# Columns a patch may touch; id and the timestamps are managed here
UPDATABLE_COLUMNS = frozenset({
    "title", "platform", "status", "rating", "hours", "notes", "release_year",
    "started_at", "completed_at", "deleted", "publisher", "year", "genre", "description",
})

SAMPLE_GAMES: tuple[dict[str, Any], ...] = (
    {
        "title": "The Legend of Zelda: Breath of the Wild",
        "platform": "Nintendo Switch",
        "genre": "Action-Adventure",
        "publisher": "Nintendo",
        "status": "completed",
        "rating": 10,
        "hours": 120.5,
        "release_year": 2017,
        "notes": "Every shrine done, still missing some koroks.",
    },
    {
        "title": "Hollow Knight",
        "platform": "PC",
        "genre": "Metroidvania",
        "publisher": "Team Cherry",
        "status": "playing",
        "rating": 9,
        "hours": 34.0,
        "release_year": 2017,
    },
    {
        "title": "Elden Ring",
        "platform": "PlayStation 5",
        "genre": "Action RPG",
        "publisher": "Bandai Namco",
        "status": "on_hold",
        "rating": 9,
        "hours": 58.0,
        "release_year": 2022,
    },
    {
        "title": "Stardew Valley",
        "platform": "PC",
        "genre": "Simulation",
        "publisher": "ConcernedApe",
        "status": "backlog",
        "release_year": 2016,
    },
    {
        "title": "Disco Elysium",
        "platform": "PC",
        "genre": "RPG",
        "publisher": "ZA/UM",
        "status": "dropped",
        "rating": 7,
        "hours": 6.5,
        "release_year": 2019,
        "notes": "Want to give it another go.",
    },
    {
        "title": "Outer Wilds",
        "platform": "Xbox Series X",
        "genre": "Exploration",
        "publisher": "Annapurna Interactive",
        "status": "backlog",
        "release_year": 2019,
    },
)


class GamesRepository:
    """Domain operations on the ``game`` and ``game_session`` tables.

    The core store does not special-case the ``deleted`` flag, so every read
    here filters on it explicitly. Deleting a game does not remove its
    sessions; orphaned sessions are left for the caller to clean up.
    """

    def __init__(self, database: Database) -> None:
        self.db = database

    # --- Reads ---

    def list(self, filters: GameFilters | None = None) -> list[Game]:
        """Return non-deleted games, narrowed and ordered by ``filters``."""
        games = [Game.from_record(r) for r in self.db.query("SELECT * FROM game WHERE deleted = ?", [0])]
        if filters is None:
            return games

        search = filters.search.strip().lower()
        if search:
            games = [g for g in games if search in g.searchable_text]

        if filters.status != "all":
            status = _parse_status(filters.status)
            games = [g for g in games if g.status is status]

        if filters.sort_by is not None:
            games = sort_games(games, filters.sort_by)
        return games

    def get(self, game_id: int) -> Game | None:
        """Return the game with ``game_id``, or None."""
        record = self.db.get_first("SELECT * FROM game WHERE id = ?", [game_id])
        return Game.from_record(record) if record is not None else None

    # --- Writes ---

    def create(self, data: GameInput | Mapping[str, Any]) -> int:
        """Validate and insert a game, returning its new id."""
        values = _input_values(data)
        _validate(values, require_title=True)

        now = utc_now_iso()
        values["created_at"] = now
        values["updated_at"] = now
        game_id = self.db.insert("game", values)
        logger.info("Created game %d (%s)", game_id, values["title"])
        return game_id

    def update(self, game_id: int, patch: Mapping[str, Any]) -> None:
        """Apply ``patch`` to a game and refresh its ``updated_at``.

        Raises:
            NotFoundError: If no game has ``game_id``.
            ValidationError: If the patch names unknown columns or bad values.
        """
        unknown = set(patch) - UPDATABLE_COLUMNS
        if unknown:
            raise ValidationError(f"Cannot update column(s): {', '.join(sorted(unknown))}")
        values = dict(patch)
        if "status" in values and values["status"] is not None:
            values["status"] = _parse_status(values["status"]).value
        _validate(values, require_title="title" in values)

        if self.get(game_id) is None:
            raise NotFoundError(f"Game {game_id} not found")

        values["updated_at"] = utc_now_iso()
        self.db.update("game", values, "id = ?", [game_id])

    def delete(self, game_id: int) -> None:
        """Remove a game for good. Deleting a missing id does nothing."""
        result = self.db.execute("DELETE FROM game WHERE id = ?", [game_id])
        if getattr(result, "affected", 0):
            logger.info("Deleted game %d", game_id)

    def add_sample_data(self) -> list[int]:
        """Insert the demonstration games and return their ids."""
        ids = [self.create(dict(game)) for game in SAMPLE_GAMES]
        logger.info("Added %d sample games", len(ids))
        return ids

    # --- Sessions ---

    def log_session(
        self,
        game_id: int,
        minutes: int,
        note: str | None = None,
        played_at: str | None = None,
    ) -> int:
        """Record a play session for an existing game and return its id."""
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise ValidationError("minutes must be a positive integer")
        if self.get(game_id) is None:
            raise NotFoundError(f"Game {game_id} not found")

        now = utc_now_iso()
        return self.db.insert(
            "game_session",
            {
                "game_id": game_id,
                "minutes": minutes,
                "note": note,
                "played_at": played_at or now,
                "created_at": now,
            },
        )

    def list_sessions(self, game_id: int) -> list[GameSession]:
        """Return the sessions logged for ``game_id`` in the order they were added."""
        rows = self.db.query("SELECT * FROM game_session WHERE game_id = ?", [game_id])
        return [GameSession.from_record(r) for r in rows]

    # --- Summaries ---

    def stats(self, games: list[Game] | None = None) -> LibraryStats:
        """Summarize ``games`` (all non-deleted games by default)."""
        if games is None:
            games = self.list()
        rated = [g.rating for g in games if g.rating is not None]
        counts = {status.value: 0 for status in GameStatus}
        for game in games:
            counts[game.status.value] += 1
        return LibraryStats(
            total_games=len(games),
            total_hours=round(sum(g.hours for g in games), 1),
            average_rating=round(sum(rated) / len(rated), 1) if rated else 0.0,
            games_with_rating=len(rated),
            status_counts=counts,
        )


def sort_games(games: list[Game], sort_by: SortOption | str) -> list[Game]:
    """Return ``games`` ordered by ``sort_by``.

    Titles sort A to Z with numbers compared numerically. Every other key
    sorts largest or newest first, and unrated games go last.
    """
    try:
        option = SortOption(sort_by)
    except ValueError:
        raise ValidationError(f"Unknown sort option: {sort_by}") from None

    if option is SortOption.TITLE:
        return sorted(games, key=lambda g: _natural_key(g.title))
    if option is SortOption.RATING:
        rated = sorted((g for g in games if g.rating is not None), key=lambda g: g.rating, reverse=True)
        return rated + [g for g in games if g.rating is None]
    if option is SortOption.HOURS:
        return sorted(games, key=lambda g: g.hours, reverse=True)
    if option is SortOption.CREATED:
        return sorted(games, key=lambda g: g.created_at, reverse=True)
    return sorted(games, key=lambda g: g.updated_at, reverse=True)


def _natural_key(text: str) -> list[tuple[int, Any]]:
    return [
        (0, int(part)) if part.isdigit() else (1, part)
        for part in re.split(r"(\d+)", text.casefold())
        if part
    ]


def _parse_status(value: Any) -> GameStatus:
    try:
        return GameStatus.parse(value)
    except ValueError:
        raise ValidationError(f"Unknown status: {value}") from None


def _input_values(data: GameInput | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(data, GameInput):
        try:
            return data.to_values()
        except ValueError:
            raise ValidationError(f"Unknown status: {data.status}") from None

    values = {k: v for k, v in data.items() if v is not None}
    # Timestamps are always stamped here
    values.pop("created_at", None)
    values.pop("updated_at", None)
    values.pop("id", None)
    unknown = set(values) - UPDATABLE_COLUMNS
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    if "status" in values:
        values["status"] = _parse_status(values["status"]).value
    return values


def _validate(values: Mapping[str, Any], require_title: bool) -> None:
    if require_title:
        title = values.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("title is required")
    hours = values.get("hours")
    if hours is not None:
        if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours < 0:
            raise ValidationError("hours must be a non-negative number")
    rating = values.get("rating")
    if rating is not None and (isinstance(rating, bool) or not isinstance(rating, int)):
        raise ValidationError("rating must be an integer")
