"""Grandfather-father-son retention for tarsnap archives."""

__version__ = "0.3.0"
