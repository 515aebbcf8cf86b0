"""
Thin wrapper around the ``tarsnap`` binary.

Commands are run with explicit argument lists (never through a shell), so
archive names containing shell metacharacters are passed through verbatim.
"""

from __future__ import annotations

import subprocess
from typing import List, Optional, Sequence

from .logger import get_logger, log_extra

log = get_logger(__name__)


class TarsnapCommandError(RuntimeError):
    """tarsnap could not be run or exited non-zero."""

    def __init__(self, argv: Sequence[str], returncode: Optional[int], stderr: str = "") -> None:
        detail = stderr.strip()
        if returncode is None:
            msg = f"Command {' '.join(argv)} could not be started"
        else:
            msg = f"Command {' '.join(argv)} failed with exit status {returncode}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr


class TarsnapClient:
    """Lists and deletes archives through the tarsnap command line."""

    def __init__(
        self,
        binary: str = "tarsnap",
        keyfile: Optional[str] = None,
        cachedir: Optional[str] = None,
    ) -> None:
        self.binary = binary
        self.keyfile = keyfile
        self.cachedir = cachedir

    def _keyfile_args(self) -> List[str]:
        return ["--keyfile", self.keyfile] if self.keyfile else []

    def list_command(self) -> List[str]:
        return [self.binary, "--list-archives", *self._keyfile_args()]

    def delete_command(self, names: Sequence[str]) -> List[str]:
        argv = [self.binary, "-d", *self._keyfile_args()]
        if self.cachedir:
            argv += ["--cachedir", self.cachedir]
        for name in names:
            argv += ["-f", name]
        return argv

    def _run(self, argv: List[str]) -> str:
        log.debug("Running %s", argv, extra=log_extra(argv=argv))
        try:
            result = subprocess.run(argv, capture_output=True, text=True, check=False)
        except OSError as e:
            raise TarsnapCommandError(argv, None, str(e)) from e
        if result.returncode != 0:
            raise TarsnapCommandError(argv, result.returncode, result.stderr or "")
        return result.stdout

    def list_archives(self) -> List[str]:
        """Return every archive name known to the service."""
        out = self._run(self.list_command())
        names = [line.strip() for line in out.splitlines() if line.strip()]
        log.info("Listed %d archives", len(names))
        return names

    def delete_archives(self, names: Sequence[str]) -> None:
        """Delete ``names`` in a single tarsnap invocation."""
        if not names:
            return
        log.info("Deleting %d archives", len(names), extra=log_extra(archives=list(names)))
        self._run(self.delete_command(names))
