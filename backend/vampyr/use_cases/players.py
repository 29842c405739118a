"""Game-side player use-cases (nickname login and lookup)."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain_errors import store_unavailable
from ..models import Player

logger = logging.getLogger(__name__)


def _get_player(db: Session, nickname: str) -> Player | None:
    return db.query(Player).filter(Player.nickname == nickname).first()


def game_login_use_case(*, db: Session, nickname: str) -> tuple[Player, bool]:
    """Find the player by nickname or create it; returns (player, created)."""
    try:
        player = _get_player(db, nickname)
        if player:
            return player, False

        player = Player(nickname=nickname)
        db.add(player)
        try:
            db.commit()
        except IntegrityError:
            # Another request created the same nickname first.
            db.rollback()
            player = _get_player(db, nickname)
            if not player:
                raise
            return player, False
        db.refresh(player)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to log in player")
        raise store_unavailable() from exc

    logger.info("player.created player=%s nickname=%s", player.id, player.nickname)
    return player, True


def get_player_status_use_case(*, db: Session, nickname: str) -> Player | None:
    try:
        return _get_player(db, nickname)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to load player status")
        raise store_unavailable() from exc
