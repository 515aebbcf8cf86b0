from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .cache import DEFAULT_MAX_AGE, parse_duration
from .logger import get_logger
from .retain import RetentionQuotas

log = get_logger(__name__)


class TarsnapSettings(BaseModel):
    binary: str = "tarsnap"
    keyfile: Optional[str] = None
    cachedir: Optional[str] = None


class CacheSettings(BaseModel):
    path: Optional[str] = None
    max_age: timedelta = DEFAULT_MAX_AGE

    @field_validator("max_age", mode="before")
    @classmethod
    def _parse_max_age(cls, v: object) -> object:
        if isinstance(v, str):
            return parse_duration(v)
        return v


class Settings(BaseModel):
    """Defaults read from a YAML settings file; command-line flags win."""
    tarsnap: TarsnapSettings = Field(default_factory=TarsnapSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)


class CleanupConfig(BaseModel):
    """Everything one run needs, built once and never mutated."""
    model_config = ConfigDict(frozen=True)

    quotas: RetentionQuotas
    prefixes: List[str] = Field(default_factory=list)
    keyfile: Optional[str] = None
    cachedir: Optional[str] = None
    archive_cache: Optional[str] = None
    archive_cache_max_age: timedelta = DEFAULT_MAX_AGE
    tarsnap_binary: str = "tarsnap"
    verbose: bool = False
    dry_run: bool = False


def _find_settings_path(explicit: Optional[str]) -> Optional[Path]:
    candidates = []
    if explicit:
        candidates.append(Path(explicit))
    env = os.getenv("TARSNAP_CLEANUP_CONFIG")
    if env:
        candidates.append(Path(env))
    candidates.extend([
        Path("tarsnap-cleanup.yaml"),
        Path("config/tarsnap-cleanup.yaml"),
    ])
    for p in candidates:
        if p and p.exists() and p.is_file():
            return p
    return None


def _apply_env(s: Settings) -> Settings:
    if keyfile := os.getenv("TARSNAP_KEYFILE"):
        s.tarsnap.keyfile = keyfile
    if binary := os.getenv("TARSNAP_CLEANUP_BINARY"):
        s.tarsnap.binary = binary
    return s


def load_settings(path: Optional[str] = None) -> Settings:
    p = _find_settings_path(path)
    if not p:
        if path:
            log.warning("Settings file %s not found; using defaults", path)
        else:
            log.debug("No settings file found; using defaults")
        return _apply_env(Settings())

    with open(p, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    try:
        s = Settings(**raw)
    except ValidationError as e:
        log.error("Settings validation failed: %s", e)
        raise
    return _apply_env(s)


def build_config(
    settings: Settings,
    quotas: RetentionQuotas,
    prefixes: List[str],
    *,
    keyfile: Optional[str] = None,
    cachedir: Optional[str] = None,
    archive_cache: Optional[str] = None,
    archive_cache_max_age: Optional[timedelta] = None,
    tarsnap_binary: Optional[str] = None,
    verbose: bool = False,
    dry_run: bool = False,
) -> CleanupConfig:
    """Merge command-line values over settings-file defaults."""
    return CleanupConfig(
        quotas=quotas,
        prefixes=list(prefixes),
        keyfile=keyfile or settings.tarsnap.keyfile,
        cachedir=cachedir or settings.tarsnap.cachedir,
        archive_cache=archive_cache or settings.cache.path,
        archive_cache_max_age=(
            archive_cache_max_age if archive_cache_max_age is not None else settings.cache.max_age
        ),
        tarsnap_binary=tarsnap_binary or settings.tarsnap.binary,
        verbose=verbose,
        dry_run=dry_run,
    )
