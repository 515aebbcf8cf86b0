from __future__ import annotations

import os
import re
import tempfile
import time
from datetime import timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from .logger import get_logger

log = get_logger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=4)

DUR_RE = re.compile(r"^(?P<num>\d+(?:\.\d+)?)(?P<unit>[smhd])$")

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(s: str) -> timedelta:
    """Parse ``<number><unit>`` where unit is s, m, h or d (e.g. ``90m``)."""
    if not s or not isinstance(s, str):
        raise ValueError("duration must be a non-empty string")
    m = DUR_RE.match(s.strip())
    if not m:
        raise ValueError(f"invalid duration {s!r}: expected a number followed by s, m, h or d")
    return timedelta(seconds=float(m.group("num")) * _UNIT_SECONDS[m.group("unit")])


class ArchiveLister(Protocol):
    def list_archives(self) -> List[str]: ...


class ArchiveListingCache:
    """A file holding the last archive listing, one name per line."""

    def __init__(self, path: os.PathLike[str] | str, max_age: timedelta = DEFAULT_MAX_AGE) -> None:
        self.path = Path(path)
        self.max_age = max_age

    def age(self, now: Optional[float] = None) -> Optional[timedelta]:
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return None
        return timedelta(seconds=(now if now is not None else time.time()) - mtime)

    def is_fresh(self, now: Optional[float] = None) -> bool:
        age = self.age(now)
        return age is not None and age < self.max_age

    def read(self) -> List[str]:
        with open(self.path, "r", encoding="utf-8") as f:
            return [line.strip() for line in f if line.strip()]

    def write(self, names: Iterable[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                for name in names:
                    f.write(name + "\n")
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def forget(self, names: Iterable[str]) -> None:
        """Drop deleted archives from an existing cache file."""
        if not self.path.exists():
            return
        gone = set(names)
        # Keep the original mtime so forgetting does not extend freshness.
        st = self.path.stat()
        self.write([n for n in self.read() if n not in gone])
        os.utime(self.path, (st.st_atime, st.st_mtime))


def load_archive_names(client: ArchiveLister, cache: Optional[ArchiveListingCache] = None) -> List[str]:
    """Archive names from a fresh cache, otherwise from tarsnap (refreshing the cache)."""
    if cache is not None and cache.is_fresh():
        log.info("Using cached archive listing %s", cache.path)
        return cache.read()
    names = client.list_archives()
    if cache is not None:
        cache.write(names)
        log.info("Wrote archive listing cache %s (%d archives)", cache.path, len(names))
    return names
