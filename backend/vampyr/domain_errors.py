"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Use-case level error with stable code and HTTP mapping.

    Only ``retryable`` errors may be retried by the caller without new input.
    """

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None
    retryable: bool = False

    def __str__(self) -> str:
        return self.message


def player_not_found(nickname: str) -> DomainError:
    return DomainError(
        code="PLAYER_NOT_FOUND",
        http_status=404,
        message="Player not found",
        details={"nickname": nickname},
    )


def link_code_invalid() -> DomainError:
    return DomainError(
        code="LINK_CODE_INVALID",
        http_status=400,
        message="Link code is invalid or expired",
    )


def link_code_already_used() -> DomainError:
    return DomainError(
        code="LINK_CODE_ALREADY_USED",
        http_status=409,
        message="Link code has already been used",
    )


def player_linked_to_other_user() -> DomainError:
    return DomainError(
        code="PLAYER_LINKED_TO_OTHER_USER",
        http_status=409,
        message="Player is already linked to another account",
    )


def player_not_linked() -> DomainError:
    return DomainError(
        code="PLAYER_NOT_LINKED",
        http_status=404,
        message="No player is linked to this account",
    )


def store_unavailable() -> DomainError:
    return DomainError(
        code="STORE_UNAVAILABLE",
        http_status=503,
        message="Storage is temporarily unavailable, try again",
        retryable=True,
    )
