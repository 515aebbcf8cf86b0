from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List


def _iso_week(dt: datetime) -> tuple[int, int]:
    iso = dt.isocalendar()
    return iso[0], iso[1]  # iso_year, iso_week


def _yday(dt: datetime) -> int:
    return dt.timetuple().tm_yday


class Tier(str, Enum):
    """Retention tiers, declared coarsest first."""
    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"
    ANY = "any"

    @classmethod
    def by_priority(cls) -> List[Tier]:
        return list(cls)

    @classmethod
    def finest_first(cls) -> List[Tier]:
        return list(reversed(cls))

    @classmethod
    def parse(cls, name: str) -> Tier:
        try:
            return cls(name.lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown tier {name!r}. Use: {valid}") from None

    @property
    def short_flag(self) -> str:
        return f"-{self.value[0]}"

    def boundary(self, older: datetime, newer: datetime) -> bool:
        """True if ``newer`` opens a new period relative to ``older``.

        The comparisons are field-wise, not chronological: monthly only
        compares the month number once the year is equal, and so on.
        """
        if self is Tier.YEARLY:
            return newer.year > older.year
        if self is Tier.MONTHLY:
            return newer.year > older.year or newer.month > older.month
        if self is Tier.WEEKLY:
            old_year, old_week = _iso_week(older)
            new_year, new_week = _iso_week(newer)
            return new_year > old_year or new_week > old_week
        if self is Tier.DAILY:
            return newer.year > older.year or _yday(newer) > _yday(older)
        return True
