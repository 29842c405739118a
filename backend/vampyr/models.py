"""SQLAlchemy models for users, game players and player link codes."""
from sqlalchemy import (
    Boolean, Column, String, Integer, DateTime, ForeignKey, CheckConstraint, Index, Uuid
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from .database import Base


LINK_CODE_REASON_LINKED = "linked"
LINK_CODE_REASON_SUPERSEDED = "superseded"


class User(Base):
    """Authenticated account identity (managed by the account service)."""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    # Monotonically increasing version used to revoke previously issued tokens.
    token_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    players = relationship("Player", back_populates="user")


class Player(Base):
    """Game-side identity keyed by nickname, optionally owned by one user."""
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nickname = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)  # NULL => unlinked
    linked_at = Column(DateTime(timezone=True), nullable=True)
    level = Column(Integer, nullable=False, default=1)
    enemies_defeated = Column(Integer, nullable=False, default=0)
    defeats = Column(Integer, nullable=False, default=0)
    play_time = Column(Integer, nullable=False, default=0)  # seconds
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="players")
    link_codes = relationship("LinkCode", back_populates="player")

    @property
    def is_linked(self) -> bool:
        return self.user_id is not None


class LinkCode(Base):
    """Short-lived code binding a player to the user who submits it.

    Rows are never deleted; they form the audit trail of issuance and use.
    """
    __tablename__ = "link_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(16), unique=True, nullable=False, index=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed = Column(Boolean, nullable=False, default=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    # Why the code stopped being pending: only "linked" codes may be replayed after an unlink.
    consumed_reason = Column(String(20), nullable=True)
    consumed_by_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    player = relationship("Player", back_populates="link_codes")
    consumed_by = relationship("User", foreign_keys=[consumed_by_user_id])

    __table_args__ = (
        CheckConstraint(
            consumed_reason.in_([LINK_CODE_REASON_LINKED, LINK_CODE_REASON_SUPERSEDED]),
            name="chk_link_code_consumed_reason",
        ),
        # At most one unconsumed code per player.
        Index(
            "uq_link_codes_player_pending",
            "player_id",
            unique=True,
            postgresql_where=consumed.is_(False),
            sqlite_where=consumed.is_(False),
        ),
    )
