"""Domain types for the game library."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any

from gamelog.errors import ValidationError
from gamelog.types import Record


class GameStatus(str, Enum):
    """Where a game sits in the player's library."""

    BACKLOG = "backlog"
    PLAYING = "playing"
    COMPLETED = "completed"
    DROPPED = "dropped"
    ON_HOLD = "on_hold"

    @classmethod
    def parse(cls, value: str | GameStatus) -> GameStatus:
        """Return the status for ``value``, raising ValueError if unknown."""
        if isinstance(value, GameStatus):
            return value
        return cls(str(value).strip().lower())


class SortOption(str, Enum):
    """Orderings offered for the game list."""

    UPDATED = "updated"
    TITLE = "title"
    RATING = "rating"
    HOURS = "hours"
    CREATED = "created"


@dataclass
class Game:
    """A game record as stored in the ``game`` table."""

    id: int
    title: str
    status: GameStatus = GameStatus.BACKLOG
    platform: str | None = None
    rating: int | None = None
    hours: float = 0.0
    notes: str | None = None
    release_year: int | None = None
    started_at: str | None = None
    completed_at: str | None = None
    created_at: str = ""
    updated_at: str = ""
    deleted: int = 0
    publisher: str | None = None
    year: int | None = None
    genre: str | None = None
    description: str | None = None

    @classmethod
    def from_record(cls, record: Record) -> Game:
        """Build a Game from a stored record, ignoring unknown columns."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {k: v for k, v in record.items() if k in known}
        status = values.get("status")
        try:
            values["status"] = GameStatus.parse(status) if status is not None else GameStatus.BACKLOG
        except ValueError as e:
            raise ValidationError(f"Game {record.get('id')} has unknown status '{status}'") from e
        hours = values.get("hours")
        values["hours"] = float(hours) if hours is not None else 0.0
        values["deleted"] = int(values.get("deleted") or 0)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @property
    def searchable_text(self) -> str:
        """Lower-cased text the library search looks through."""
        parts = [self.title, self.platform, self.genre, self.publisher, self.description, self.notes]
        return " ".join(p for p in parts if p).lower()


@dataclass
class GameInput:
    """Fields accepted when creating a game."""

    title: str
    platform: str | None = None
    genre: str | None = None
    publisher: str | None = None
    description: str | None = None
    notes: str | None = None
    status: GameStatus | str = GameStatus.BACKLOG
    release_year: int | None = None
    year: int | None = None
    rating: int | None = None
    hours: float | None = None
    started_at: str | None = None
    completed_at: str | None = None

    def to_values(self) -> dict[str, Any]:
        """Return column values, dropping unset optionals."""
        values = {k: v for k, v in asdict(self).items() if v is not None}
        if "status" in values:
            values["status"] = GameStatus.parse(values["status"]).value
        return values


@dataclass
class GameFilters:
    """How the game list is narrowed and ordered.

    ``sort_by`` of None keeps insertion order.
    """

    search: str = ""
    status: GameStatus | str = "all"
    sort_by: SortOption | str | None = None


@dataclass
class GameSession:
    """One play session logged against a game."""

    id: int
    game_id: int
    minutes: int
    played_at: str
    created_at: str
    note: str | None = None

    @classmethod
    def from_record(cls, record: Record) -> GameSession:
        return cls(
            id=int(record["id"]),  # type: ignore[arg-type]
            game_id=int(record["game_id"]),  # type: ignore[arg-type]
            minutes=int(record["minutes"]),  # type: ignore[arg-type]
            played_at=str(record["played_at"]),
            created_at=str(record["created_at"]),
            note=record.get("note"),  # type: ignore[arg-type]
        )


@dataclass
class LibraryStats:
    """Summary figures for a list of games."""

    total_games: int = 0
    total_hours: float = 0.0
    average_rating: float = 0.0
    games_with_rating: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)
