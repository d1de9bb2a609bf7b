"""Notification entity."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Notification:
    """A human-readable message for one or more family members."""

    event_id: str
    recipient_ids: Tuple[int, ...]
    subject: str
    message: str
