"""Per-IP view-once enforcement for IP-restricted content."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.content import Content
from services.content_store import ContentStore

ALREADY_VIEWED_REASON = "already_viewed_from_ip"


@dataclass(frozen=True)
class ViewDecision:
    allowed: bool
    reason: Optional[str] = None


ALLOWED = ViewDecision(allowed=True)


async def check_and_record_view(
    store: ContentStore,
    item: Content,
    ip_address: str,
    now: Optional[datetime] = None,
) -> ViewDecision:
    """Deny a repeat view from the same IP, otherwise record it and allow.

    Two near-simultaneous first views from one IP may both be allowed; the
    second insert is ignored by the unique constraint.
    """
    if not item.ip_restriction:
        return ALLOWED
    if await store.has_viewed(item.id, ip_address):
        return ViewDecision(allowed=False, reason=ALREADY_VIEWED_REASON)
    await store.record_view(item.id, ip_address, now=now)
    return ALLOWED
