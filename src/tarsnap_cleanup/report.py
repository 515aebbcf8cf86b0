from __future__ import annotations

from typing import Iterable, List, Optional

from rich.console import Console

from .naming import format_timestamp
from .retain import RetentionPlan

console = Console()


def render_plan(plan: RetentionPlan) -> List[str]:
    """Audit table for one prefix: every candidate, oldest first."""
    lines = [f"Archives for prefix {plan.prefix}"]
    if plan.is_empty:
        return lines
    width = max(len(c.name) for c in plan.candidates)
    for decision in plan.ordered_decisions():
        stamp = format_timestamp(decision.candidate.timestamp)
        lines.append(f"{stamp:>19}  {decision.name:<{width}}  {decision.label()}")
    return lines


def render_dry_run(names: Iterable[str]) -> List[str]:
    return [f"Delete: {n}" for n in names]


def print_lines(lines: Iterable[str], out: Optional[Console] = None) -> None:
    target = out or console
    for line in lines:
        target.print(line, markup=False, highlight=False, soft_wrap=True)
