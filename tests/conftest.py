from __future__ import annotations

from typing import List, Sequence

import pytest

from tarsnap_cleanup.config import CleanupConfig
from tarsnap_cleanup.retain import RetentionQuotas
from tarsnap_cleanup.tarsnap import TarsnapClient

ARCHIVES = [
    "dev",
    "dev_2014-01-01_19-20-01",
    "dev_2015-01-01_19-20-01",
    "dev_2015-01-08_19-20-01",
    "dev_2015-01-09_19-20-01",
    "dev_2015-01-17_19-20-01",
    "dev_2015-01-18_19-20-01",
    "dev_2015-01-19_15-37-50",
    "dev_2015-01-19_16-03-30",
    "dev_2015-01-19_19-20-01",
    "www_2015-01-19_03-00-00",
    "www_2015-01-20_03-00-00",
    "devel_2015-01-19_03-00-00",
]


class FakeTarsnapClient(TarsnapClient):
    """Records calls instead of running tarsnap."""

    def __init__(self, archives: Sequence[str]) -> None:
        super().__init__(binary="tarsnap")
        self.archives = list(archives)
        self.list_calls = 0
        self.delete_calls: List[List[str]] = []

    def list_archives(self) -> List[str]:
        self.list_calls += 1
        return list(self.archives)

    def delete_archives(self, names: Sequence[str]) -> None:
        self.delete_calls.append(list(names))
        self.archives = [a for a in self.archives if a not in set(names)]


@pytest.fixture
def archives() -> List[str]:
    return list(ARCHIVES)


@pytest.fixture
def fake_client(archives: List[str]) -> FakeTarsnapClient:
    return FakeTarsnapClient(archives)


@pytest.fixture
def make_config():
    def _make(**overrides) -> CleanupConfig:
        values = {
            "quotas": RetentionQuotas(daily=2),
            "prefixes": ["dev"],
        }
        values.update(overrides)
        return CleanupConfig(**values)

    return _make


@pytest.fixture
def make_client():
    def _make(archives: Sequence[str]) -> FakeTarsnapClient:
        return FakeTarsnapClient(archives)

    return _make
