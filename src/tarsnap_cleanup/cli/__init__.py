"""Command-line interface for tarsnap-cleanup."""

from .core import app


def main() -> None:
    """Console entry point for the tarsnap-cleanup CLI."""
    app()


__all__ = ["app", "main"]
