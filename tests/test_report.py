from __future__ import annotations

import io

from rich.console import Console

from tarsnap_cleanup.report import print_lines, render_dry_run, render_plan
from tarsnap_cleanup.retain import RetentionQuotas, plan_prefix

NAMES = [
    "db_2015-01-01_00-00-00",
    "db_2015-01-08_00-00-00",
    "db_2015-01-09_00-00-00",
    "db_2015-01-17_00-00-00",
    "db-old_2015-01-17_00-00-00",
]


def test_render_plan_lists_every_candidate_oldest_first() -> None:
    plan = plan_prefix(NAMES, "db", RetentionQuotas(daily=1))
    before = dict(plan.decisions)

    lines = render_plan(plan)

    assert lines == [
        "Archives for prefix db",
        "2015-01-01 00:00:00  db_2015-01-01_00-00-00  DELETE",
        "2015-01-08 00:00:00  db_2015-01-08_00-00-00  DELETE",
        "2015-01-09 00:00:00  db_2015-01-09_00-00-00  KEEP daily",
        "2015-01-17 00:00:00  db_2015-01-17_00-00-00  KEEP newest",
    ]
    assert plan.decisions == before


def test_render_plan_pads_names_to_longest() -> None:
    plan = plan_prefix(["x_2015-01-01_00-00-00", "x_2015-1-2_0-0-0"], "x", RetentionQuotas(any=0))

    lines = render_plan(plan)

    assert lines[1] == "2015-01-01 00:00:00  x_2015-01-01_00-00-00  DELETE"
    assert lines[2] == "2015-01-02 00:00:00  x_2015-1-2_0-0-0       KEEP newest"


def test_render_plan_for_empty_prefix() -> None:
    plan = plan_prefix(NAMES, "web", RetentionQuotas(daily=1))
    assert render_plan(plan) == ["Archives for prefix web"]


def test_render_dry_run() -> None:
    assert render_dry_run(["a", "b c"]) == ["Delete: a", "Delete: b c"]


def test_print_lines_writes_plain_text() -> None:
    buf = io.StringIO()
    out = Console(file=buf, width=20)

    print_lines(["Delete: [bold]db_2015-01-01_00-00-00[/bold]"], out)

    assert buf.getvalue() == "Delete: [bold]db_2015-01-01_00-00-00[/bold]\n"
