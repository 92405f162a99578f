"""Freshness cursor used to decide which notifications are new to a session."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class FreshnessCursor:
    """Boundary before which notifications are considered already seen.

    ``last_checked`` is the timestamp persisted by the previous subscription
    of the user (``None`` when the user never subscribed). ``seed_ids`` holds
    the identifiers returned by the initial fetch of the current subscription.
    """

    user_id: str
    last_checked: datetime | None = None
    seed_ids: frozenset[str] = field(default_factory=frozenset)


__all__ = ["FreshnessCursor"]
