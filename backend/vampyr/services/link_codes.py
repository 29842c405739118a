"""Link code values, lifecycle state and TTL helpers."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from ..config import settings
from ..models import LINK_CODE_REASON_LINKED, LinkCode, Player


LINK_CODE_STATE_PENDING = "pending"
LINK_CODE_STATE_EXPIRED = "expired"
LINK_CODE_STATE_CONSUMED = "consumed"
# Consumed by a link whose player has since been unlinked.
LINK_CODE_STATE_CONSUMED_REPLAYABLE = "consumed_replayable"

USABLE_LINK_CODE_STATES: frozenset[str] = frozenset(
    {LINK_CODE_STATE_PENDING, LINK_CODE_STATE_CONSUMED_REPLAYABLE}
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def generate_link_code_value() -> str:
    """Return a fresh code: CSPRNG bytes rendered as fixed-length uppercase hex."""
    return secrets.token_bytes(settings.LINK_CODE_BYTES).hex().upper()


def link_code_expiry(created_at: datetime) -> datetime:
    return created_at + timedelta(seconds=settings.LINK_CODE_TTL_SECONDS)


def is_expired(link_code: LinkCode, now: datetime) -> bool:
    return as_utc(now) >= as_utc(link_code.expires_at)


def link_code_state(link_code: LinkCode, player: Player, now: datetime) -> str:
    """Derive the code state; expiry dominates the consumed flag."""
    if is_expired(link_code, now):
        return LINK_CODE_STATE_EXPIRED
    if not link_code.consumed:
        return LINK_CODE_STATE_PENDING
    if link_code.consumed_reason == LINK_CODE_REASON_LINKED and player.user_id is None:
        return LINK_CODE_STATE_CONSUMED_REPLAYABLE
    return LINK_CODE_STATE_CONSUMED


def seconds_remaining(link_code: LinkCode, now: datetime) -> int:
    remaining = (as_utc(link_code.expires_at) - as_utc(now)).total_seconds()
    return max(0, int(remaining))


def build_link_url(code: str, *, auto: bool = False) -> str:
    """Callback URL the game client encodes for the mobile app to open."""
    params = {"qr": code}
    if auto:
        params["auto"] = "1"
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/link?{urlencode(params)}"
