"""
Grandfather-father-son retention selection.

Given the candidates of one prefix (oldest first) and a quota per tier,
decide which archives to keep. The newest archive is always kept. Tiers are
then walked finest first (any, daily, weekly, monthly, yearly); each walks the
adjacent (older, newer) pairs from the most recent backwards and claims
``older`` whenever the pair crosses a period boundary at that tier's
granularity, until its quota is used up. A candidate claimed once is never
reassigned, so a coarse tier can end up with part of its quota unused.

Usage:
    from tarsnap_cleanup.retain import RetentionQuotas, plan_prefix

    plan = plan_prefix(names, "backup", RetentionQuotas(daily=7, weekly=4))
    plan.keep    # names to keep, oldest first
    plan.delete  # names to delete, oldest first
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .logger import get_logger, log_extra
from .naming import Candidate, collect_candidates, format_timestamp
from .tiers import Tier

log = get_logger(__name__)

NEWEST = "newest"


class RetentionQuotas(BaseModel):
    """How many archives each tier may claim, on top of the newest one.

    None means the tier was not requested at all.
    """
    model_config = ConfigDict(frozen=True)

    yearly: Optional[int] = Field(default=None, ge=0)
    monthly: Optional[int] = Field(default=None, ge=0)
    weekly: Optional[int] = Field(default=None, ge=0)
    daily: Optional[int] = Field(default=None, ge=0)
    any: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def from_mapping(cls, quotas: Mapping[Union[Tier, str], Optional[int]]) -> RetentionQuotas:
        values = {Tier.parse(k).value: v for k, v in quotas.items()}
        return cls(**values)

    def for_tier(self, tier: Tier) -> int:
        return getattr(self, tier.value) or 0

    def given(self) -> List[Tier]:
        return [t for t in Tier.by_priority() if getattr(self, t.value) is not None]

    def is_empty(self) -> bool:
        return not self.given()

    def has_positive(self) -> bool:
        """True if at least one tier may claim an archive."""
        return any(self.for_tier(t) >= 1 for t in Tier)

    def describe(self) -> str:
        parts = [f"{t.value}={self.for_tier(t)}" for t in self.given()]
        return ", ".join(parts) if parts else "none"


@dataclass(frozen=True)
class Decision:
    """Outcome for one candidate. ``reason`` is a tier name, "newest" or None."""
    candidate: Candidate
    kept: bool
    reason: Optional[str] = None

    @property
    def name(self) -> str:
        return self.candidate.name

    def label(self) -> str:
        return f"KEEP {self.reason}" if self.kept else "DELETE"


@dataclass
class RetentionPlan:
    """Keep/delete partition for one prefix."""
    prefix: str
    candidates: List[Candidate]
    decisions: Dict[str, Decision] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    @property
    def keep(self) -> List[str]:
        return [c.name for c in self.candidates if self.decisions[c.name].kept]

    @property
    def delete(self) -> List[str]:
        return [c.name for c in self.candidates if not self.decisions[c.name].kept]

    def ordered_decisions(self) -> List[Decision]:
        return [self.decisions[c.name] for c in self.candidates]

    def claims_by_reason(self) -> Dict[str, int]:
        return dict(Counter(d.reason for d in self.decisions.values() if d.kept and d.reason))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix,
            "candidates": len(self.candidates),
            "keep": self.keep,
            "delete": self.delete,
            "claims": self.claims_by_reason(),
            "decisions": [
                {
                    "name": d.name,
                    "timestamp": format_timestamp(d.candidate.timestamp),
                    "kept": d.kept,
                    "reason": d.reason,
                }
                for d in self.ordered_decisions()
            ],
        }


def select_retention(candidates: List[Candidate], quotas: RetentionQuotas) -> Dict[str, Decision]:
    """
    Decide keep/delete for ``candidates``, which must be sorted oldest first.

    Returns one Decision per candidate, keyed by archive name. An empty input
    yields an empty mapping.
    """
    if not candidates:
        return {}

    marked: Dict[str, str] = {candidates[-1].name: NEWEST}

    # Pairs of (older, newer), most recent first; newer is the one tested.
    pairs = list(zip(candidates[:-1], candidates[1:]))
    pairs.reverse()

    for tier in Tier.finest_first():
        remaining = quotas.for_tier(tier)
        if remaining <= 0:
            continue
        for older, newer in pairs:
            if older.name in marked:
                continue
            if tier.boundary(older.timestamp, newer.timestamp):
                marked[older.name] = tier.value
                remaining -= 1
                if remaining == 0:
                    break
        if remaining > 0:
            log.debug("Tier %s left %d of its quota unused", tier.value, remaining)

    return {
        c.name: Decision(candidate=c, kept=c.name in marked, reason=marked.get(c.name))
        for c in candidates
    }


def plan_prefix(names: Iterable[str], prefix: str, quotas: RetentionQuotas) -> RetentionPlan:
    """Parse the archives of ``prefix`` out of ``names`` and plan retention."""
    cands = collect_candidates(names, prefix)
    plan = RetentionPlan(prefix=prefix, candidates=cands, decisions=select_retention(cands, quotas))
    if not plan.is_empty:
        log.info(
            "Prefix %s: keep %d, delete %d (%s)",
            prefix,
            len(plan.keep),
            len(plan.delete),
            quotas.describe(),
            extra=log_extra(prefix=prefix, keep=len(plan.keep), delete=len(plan.delete)),
        )
    return plan
