"""Utility helpers for family-vault."""

from .datetime import utc_now, to_utc, is_past

__all__ = [
    "utc_now",
    "to_utc",
    "is_past",
]
