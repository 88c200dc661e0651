"""Domain models for per-user records."""

from dataclasses import dataclass, field


@dataclass
class UserRecord:
    """Favorites and viewing history for a single user."""

    favorites: list[str] = field(default_factory=list)
    history: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UserStatistics:
    """Counts derived from a user record."""

    favorite_count: int
    history_count: int
