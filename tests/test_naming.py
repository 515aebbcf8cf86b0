from __future__ import annotations

from datetime import datetime

import pytest

from tarsnap_cleanup.naming import (
    Candidate,
    InvalidArchiveName,
    collect_candidates,
    format_timestamp,
    parse_archive_name,
)


def test_parse_archive_name_decodes_timestamp() -> None:
    cand = parse_archive_name("backup_2015-01-19_16-03-30", "backup")

    assert cand == Candidate("backup_2015-01-19_16-03-30", datetime(2015, 1, 19, 16, 3, 30))
    assert format_timestamp(cand.timestamp) == "2015-01-19 16:03:30"


@pytest.mark.parametrize("name", [
    "backup",
    "backup_2015-01-19",
    "backup_2015-01-19_16-03-30.part",
    "xbackup_2015-01-19_16-03-30",
    "backup-extra_2015-01-19_16-03-30",
    "backup_2015-01-19_16-03",
])
def test_parse_archive_name_rejects_non_matching(name: str) -> None:
    assert parse_archive_name(name, "backup") is None


def test_prefix_is_matched_literally() -> None:
    assert parse_archive_name("aXb_2015-01-19_16-03-30", "a.b") is None
    assert parse_archive_name("a.b_2015-01-19_16-03-30", "a.b") is not None


def test_longer_prefix_does_not_match_shorter_one() -> None:
    assert parse_archive_name("devel_2015-01-19_03-00-00", "dev") is None


def test_invalid_calendar_date_is_fatal() -> None:
    with pytest.raises(InvalidArchiveName) as exc:
        parse_archive_name("backup_2015-13-01_00-00-00", "backup")
    assert exc.value.name == "backup_2015-13-01_00-00-00"


def test_collect_candidates_sorts_and_filters(archives: list[str]) -> None:
    cands = collect_candidates(archives, "dev")

    assert [c.name for c in cands][0] == "dev_2014-01-01_19-20-01"
    assert [c.name for c in cands][-1] == "dev_2015-01-19_19-20-01"
    assert len(cands) == 9
    assert all(a.timestamp <= b.timestamp for a, b in zip(cands, cands[1:]))


def test_collect_candidates_keeps_listing_order_for_equal_timestamps() -> None:
    names = ["a_2015-01-02_00-00-00", "a_2015-1-2_0-0-0", "a_2015-01-01_00-00-00"]

    cands = collect_candidates(names, "a")

    assert [c.name for c in cands] == [
        "a_2015-01-01_00-00-00",
        "a_2015-01-02_00-00-00",
        "a_2015-1-2_0-0-0",
    ]


def test_collect_candidates_aborts_on_invalid_date() -> None:
    with pytest.raises(InvalidArchiveName):
        collect_candidates(["a_2015-01-01_00-00-00", "a_2015-02-30_00-00-00"], "a")


@pytest.mark.parametrize("name", [
    "b_٢٠١٥-01-19_16-03-30",
    "b_2015-01-19_16-03-30\n",
])
def test_only_ascii_digits_and_no_trailing_newline(name: str) -> None:
    assert parse_archive_name(name, "b") is None
    assert collect_candidates([name], "b") == []
