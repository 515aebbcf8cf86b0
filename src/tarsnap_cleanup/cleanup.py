"""
One cleanup run: list archives once, then plan, report and delete per prefix.

Prefixes are independent; an empty prefix is a warning, any tarsnap failure
aborts the whole run (deletions already issued stay applied).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rich.console import Console

from .cache import ArchiveListingCache, load_archive_names
from .config import CleanupConfig
from .logger import get_logger, log_extra
from .report import print_lines, render_dry_run, render_plan
from .retain import RetentionPlan, plan_prefix
from .tarsnap import TarsnapClient

log = get_logger(__name__)


@dataclass
class CleanupResult:
    dry_run: bool
    plans: Dict[str, RetentionPlan] = field(default_factory=dict)
    deleted: Dict[str, List[str]] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    @property
    def planned_delete_count(self) -> int:
        return sum(len(p.delete) for p in self.plans.values())


def client_for(config: CleanupConfig) -> TarsnapClient:
    return TarsnapClient(
        binary=config.tarsnap_binary,
        keyfile=config.keyfile,
        cachedir=config.cachedir,
    )


def cache_for(config: CleanupConfig) -> Optional[ArchiveListingCache]:
    if not config.archive_cache:
        return None
    return ArchiveListingCache(config.archive_cache, max_age=config.archive_cache_max_age)


def run_cleanup(
    config: CleanupConfig,
    client: Optional[TarsnapClient] = None,
    console: Optional[Console] = None,
) -> CleanupResult:
    client = client or client_for(config)
    cache = cache_for(config)
    names = load_archive_names(client, cache)

    result = CleanupResult(dry_run=config.dry_run)
    for prefix in config.prefixes:
        plan = plan_prefix(names, prefix, config.quotas)
        if plan.is_empty:
            log.warning("No archives found with prefix %s", prefix)
            result.skipped.append(prefix)
            continue
        result.plans[prefix] = plan

        if config.verbose:
            print_lines(render_plan(plan), console)

        to_delete = plan.delete
        if not to_delete:
            continue
        if config.dry_run:
            print_lines(render_dry_run(to_delete), console)
            continue

        client.delete_archives(to_delete)
        result.deleted[prefix] = to_delete
        if cache is not None:
            cache.forget(to_delete)
        log.info(
            "Deleted %d archives for prefix %s",
            len(to_delete),
            prefix,
            extra=log_extra(prefix=prefix, deleted=to_delete),
        )
    return result
