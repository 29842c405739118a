"""Player-account linking use-cases: code issuance, resolution and unlink.

Lock order is always Player row first, then its LinkCode rows, so issuance
and resolution for the same player serialize instead of deadlocking.
"""
from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..domain_errors import (
    DomainError,
    link_code_already_used,
    link_code_invalid,
    player_linked_to_other_user,
    player_not_found,
    player_not_linked,
    store_unavailable,
)
from ..models import LINK_CODE_REASON_LINKED, LINK_CODE_REASON_SUPERSEDED, LinkCode, Player
from ..services.link_codes import (
    LINK_CODE_STATE_CONSUMED,
    LINK_CODE_STATE_CONSUMED_REPLAYABLE,
    LINK_CODE_STATE_EXPIRED,
    generate_link_code_value,
    link_code_expiry,
    link_code_state,
    utc_now,
)

logger = logging.getLogger(__name__)


def _lock_player_by_nickname(db: Session, nickname: str) -> Player:
    player = (
        db.query(Player)
        .filter(Player.nickname == nickname)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not player:
        raise player_not_found(nickname)
    return player


def _lock_player_by_id(db: Session, player_id: int) -> Player | None:
    return (
        db.query(Player)
        .filter(Player.id == player_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _get_link_code(db: Session, code: str) -> LinkCode | None:
    return db.query(LinkCode).filter(LinkCode.code == code).first()


def _lock_link_code(db: Session, link_code_id: int) -> LinkCode | None:
    return (
        db.query(LinkCode)
        .filter(LinkCode.id == link_code_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _supersede_pending_codes(db: Session, *, player_id: int, now: datetime) -> int:
    return db.query(LinkCode).filter(
        LinkCode.player_id == player_id,
        LinkCode.consumed.is_(False),
    ).update(
        {
            LinkCode.consumed: True,
            LinkCode.consumed_at: now,
            LinkCode.consumed_reason: LINK_CODE_REASON_SUPERSEDED,
        },
        synchronize_session=False,
    )


def _issue_once(db: Session, *, nickname: str, now: datetime) -> LinkCode:
    player = _lock_player_by_nickname(db, nickname)
    superseded = _supersede_pending_codes(db, player_id=player.id, now=now)
    if superseded:
        logger.info("link.supersede player=%s count=%s", player.id, superseded)

    link_code = LinkCode(
        code=generate_link_code_value(),
        player_id=player.id,
        created_at=now,
        expires_at=link_code_expiry(now),
        consumed=False,
    )
    db.add(link_code)
    db.flush()
    return link_code


def issue_link_code_use_case(*, db: Session, nickname: str, now: datetime | None = None) -> LinkCode:
    """Issue a fresh link code for the player, superseding any pending one."""
    attempts = max(1, settings.LINK_CODE_ISSUE_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        issued_at = now or utc_now()
        try:
            link_code = _issue_once(db, nickname=nickname, now=issued_at)
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except IntegrityError:
            # Code collision with the audit trail or a concurrent issuance for the same player.
            db.rollback()
            logger.warning("link.issue conflict nickname=%s attempt=%s/%s", nickname, attempt, attempts)
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Failed to issue link code")
            raise store_unavailable() from exc

        logger.info(
            "link.issue player=%s code_id=%s expires_at=%s",
            link_code.player_id,
            link_code.id,
            link_code.expires_at.isoformat(),
        )
        return link_code

    logger.error("link.issue gave up nickname=%s attempts=%s", nickname, attempts)
    raise store_unavailable()


def _claim(db: Session, *, link_code: LinkCode, player: Player, user_id: UUID, now: datetime) -> None:
    """Compare-and-set the owner and the code; both must match what was validated."""
    if player.user_id is None:
        owner_matches = Player.user_id.is_(None)
    else:
        owner_matches = Player.user_id == player.user_id

    owner_updated = db.query(Player).filter(
        Player.id == player.id,
        owner_matches,
    ).update(
        {Player.user_id: user_id, Player.linked_at: now},
        synchronize_session=False,
    )
    if owner_updated != 1:
        raise link_code_already_used()

    code_filters = [LinkCode.id == link_code.id]
    if link_code.consumed:
        # Replay keeps the first consumer on record.
        code_filters += [
            LinkCode.consumed.is_(True),
            LinkCode.consumed_reason == LINK_CODE_REASON_LINKED,
        ]
        values = {LinkCode.consumed_reason: LINK_CODE_REASON_LINKED}
    else:
        code_filters.append(LinkCode.consumed.is_(False))
        values = {
            LinkCode.consumed: True,
            LinkCode.consumed_at: now,
            LinkCode.consumed_reason: LINK_CODE_REASON_LINKED,
            LinkCode.consumed_by_user_id: user_id,
        }

    code_updated = db.query(LinkCode).filter(*code_filters).update(values, synchronize_session=False)
    if code_updated != 1:
        raise link_code_already_used()


def _resolve(db: Session, *, code: str, user_id: UUID, now: datetime) -> Player:
    found = _get_link_code(db, code)
    if not found:
        raise link_code_invalid()

    player = _lock_player_by_id(db, found.player_id)
    link_code = _lock_link_code(db, found.id)
    if not player or not link_code:
        raise link_code_invalid()

    state = link_code_state(link_code, player, now)
    if state == LINK_CODE_STATE_EXPIRED:
        raise link_code_invalid()
    if state == LINK_CODE_STATE_CONSUMED:
        raise link_code_already_used()

    if player.user_id is not None and player.user_id != user_id:
        raise player_linked_to_other_user()

    if state == LINK_CODE_STATE_CONSUMED_REPLAYABLE:
        logger.info("link.replay player=%s code_id=%s", player.id, link_code.id)
    _claim(db, link_code=link_code, player=player, user_id=user_id, now=now)
    return player


def resolve_link_code_use_case(
    *,
    db: Session,
    code: str,
    user_id: UUID,
    now: datetime | None = None,
) -> Player:
    """Consume a link code and bind its player to the user."""
    resolved_at = now or utc_now()
    try:
        player = _resolve(db, code=code, user_id=user_id, now=resolved_at)
        db.commit()
    except DomainError as exc:
        db.rollback()
        logger.warning("link.resolve rejected user=%s code=%s", user_id, exc.code)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to resolve link code")
        raise store_unavailable() from exc

    db.refresh(player)
    logger.info("link.resolve player=%s user=%s", player.id, user_id)
    return player


def _lock_player_by_owner(db: Session, user_id: UUID) -> Player | None:
    return (
        db.query(Player)
        .filter(Player.user_id == user_id)
        .order_by(Player.linked_at.desc(), Player.id.desc())
        .with_for_update()
        .populate_existing()
        .first()
    )


def unlink_player_use_case(*, db: Session, user_id: UUID) -> Player:
    """Clear the user's ownership of their player."""
    try:
        player = _lock_player_by_owner(db, user_id)
        if not player:
            raise player_not_linked()
        player.user_id = None
        player.linked_at = None
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to unlink player")
        raise store_unavailable() from exc

    logger.info("link.unlink player=%s user=%s", player.id, user_id)
    return player


def get_linked_player_use_case(*, db: Session, user_id: UUID) -> Player:
    try:
        player = (
            db.query(Player)
            .filter(Player.user_id == user_id)
            .order_by(Player.linked_at.desc(), Player.id.desc())
            .first()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to load linked player")
        raise store_unavailable() from exc
    if not player:
        raise player_not_linked()
    return player
