"""Core CLI application."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from ..cache import parse_duration
from ..cleanup import run_cleanup
from ..config import build_config, load_settings
from ..logger import configure_logging, get_logger
from ..naming import InvalidArchiveName
from ..retain import RetentionQuotas
from ..tarsnap import TarsnapCommandError
from ..tiers import Tier

app = typer.Typer(add_completion=False, rich_markup_mode=None)
console = Console()
err_console = Console(stderr=True)
log = get_logger(__name__)

EXIT_NO_PREFIX = 1
EXIT_NO_TIER = 2
EXIT_ZERO_QUOTAS = 3
EXIT_FAILED = 1


def _tier_help(tier: Tier) -> str:
    return f"Number of {tier.value} backups to keep"


def _usage_error(ctx: typer.Context, message: Optional[str], code: int) -> None:
    if message:
        err_console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)
    typer.echo(ctx.get_help(), err=True)
    raise typer.Exit(code)


@app.command(
    context_settings={"help_option_names": ["-h", "--help"]},
)
def cleanup(
    ctx: typer.Context,
    prefixes: Optional[List[str]] = typer.Argument(None, metavar="PREFIX...", help="Archive name prefixes"),
    yearly: Optional[int] = typer.Option(None, "--yearly", "-y", min=0, help=_tier_help(Tier.YEARLY)),
    monthly: Optional[int] = typer.Option(None, "--monthly", "-m", min=0, help=_tier_help(Tier.MONTHLY)),
    weekly: Optional[int] = typer.Option(None, "--weekly", "-w", min=0, help=_tier_help(Tier.WEEKLY)),
    daily: Optional[int] = typer.Option(None, "--daily", "-d", min=0, help=_tier_help(Tier.DAILY)),
    any_: Optional[int] = typer.Option(None, "--any", "-a", min=0, help=_tier_help(Tier.ANY)),
    keyfile: Optional[str] = typer.Option(None, "--keyfile", "-k", help="Keyfile for tarsnap"),
    cachedir: Optional[str] = typer.Option(None, "--cachedir", help="tarsnap cache directory"),
    archive_cache: Optional[str] = typer.Option(
        None, "--archive-cache", help="File caching the archive listing between runs"
    ),
    archive_cache_max_age: Optional[timedelta] = typer.Option(
        None,
        "--archive-cache-max-age",
        parser=parse_duration,
        metavar="DURATION",
        help="Reuse the archive cache if younger than this (e.g. 30m, 4h, 1d; default 4h)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print the keep/delete table per prefix"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="No real changes"),
    tarsnap_binary: Optional[str] = typer.Option(None, "--tarsnap", help="Path to the tarsnap binary"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to tarsnap-cleanup.yaml"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    """Delete tarsnap archives beyond a grandfather-father-son retention policy."""
    configure_logging(level=log_level)

    quotas = RetentionQuotas.from_mapping({
        Tier.YEARLY: yearly,
        Tier.MONTHLY: monthly,
        Tier.WEEKLY: weekly,
        Tier.DAILY: daily,
        Tier.ANY: any_,
    })
    if quotas.is_empty():
        _usage_error(ctx, "Must give at least one retention tier!", EXIT_NO_TIER)
    if not quotas.has_positive():
        _usage_error(ctx, "At least one retention tier needs a quota of 1 or more!", EXIT_ZERO_QUOTAS)
    if not prefixes:
        _usage_error(ctx, None, EXIT_NO_PREFIX)

    try:
        settings = load_settings(config)
    except ValidationError as e:
        err_console.print(f"[red]Invalid settings file: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(EXIT_FAILED)

    cfg = build_config(
        settings,
        quotas,
        list(prefixes or []),
        keyfile=keyfile,
        cachedir=cachedir,
        archive_cache=archive_cache,
        archive_cache_max_age=archive_cache_max_age,
        tarsnap_binary=tarsnap_binary,
        verbose=verbose,
        dry_run=dry_run,
    )

    try:
        run_cleanup(cfg, console=console)
    except (TarsnapCommandError, InvalidArchiveName) as e:
        log.debug("Cleanup aborted", exc_info=True)
        err_console.print(f"[red]{escape(str(e))}[/red]", highlight=False, soft_wrap=True)
        raise typer.Exit(EXIT_FAILED)
