"""
Archive name parsing.

Archives are named ``<prefix>_YYYY-MM-DD_hh-mm-ss``; anything else in the
listing is ignored for that prefix.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from .logger import get_logger

log = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class InvalidArchiveName(ValueError):
    """A name matched the archive pattern but does not encode a real date."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Archive {name!r} has an invalid timestamp: {reason}")
        self.name = name


@dataclass(frozen=True)
class Candidate:
    """An archive of one prefix that retention decisions apply to."""
    name: str
    timestamp: datetime


def archive_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(
        re.escape(prefix) + r"_(\d+)-(\d+)-(\d+)_(\d+)-(\d+)-(\d+)",
        re.ASCII,
    )


def _decode(name: str, match: re.Match[str]) -> Candidate:
    year, month, day, hour, minute, second = (int(g) for g in match.groups())
    try:
        ts = datetime(year, month, day, hour, minute, second)
    except ValueError as e:
        raise InvalidArchiveName(name, str(e)) from e
    return Candidate(name=name, timestamp=ts)


def parse_archive_name(name: str, prefix: str) -> Optional[Candidate]:
    """
    Decode ``name`` if it belongs to ``prefix``.

    Returns None for names that do not match the pattern. Raises
    InvalidArchiveName when the name matches but the fields are not a valid
    calendar date/time (e.g. month 13).
    """
    m = archive_pattern(prefix).fullmatch(name)
    if not m:
        return None
    return _decode(name, m)


def collect_candidates(names: Iterable[str], prefix: str) -> List[Candidate]:
    """Parse every matching name and return them oldest first.

    The sort is stable, so archives sharing a timestamp keep listing order.
    """
    pattern = archive_pattern(prefix)
    cands: List[Candidate] = []
    for name in names:
        m = pattern.fullmatch(name)
        if m:
            cands.append(_decode(name, m))
    cands.sort(key=lambda c: c.timestamp)
    log.debug("Prefix %s: %d matching archives", prefix, len(cands))
    return cands


def format_timestamp(ts: datetime) -> str:
    return ts.strftime(TIMESTAMP_FORMAT)
