"""
Player-account linking routes.
- Link code issuance for the game client (nickname only)
- Code resolution, lookup and unlink for authenticated users
"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..rate_limit import enforce_link_resolve_rate_limit
from ..schemas import (
    LinkCodeIssueRequest,
    LinkCodeResponse,
    LinkRequest,
    LinkResponse,
    PlayerResponse,
    UnlinkResponse,
    UserBrief,
)
from ..services.link_codes import as_utc, build_link_url, seconds_remaining, utc_now
from ..use_cases.player_link import (
    get_linked_player_use_case,
    issue_link_code_use_case,
    resolve_link_code_use_case,
    unlink_player_use_case,
)

router = APIRouter(prefix="/link", tags=["link"])


def _set_no_store(response: Response) -> None:
    # Link codes are bearer secrets for their TTL; keep them out of caches.
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"


@router.post("/codes", response_model=LinkCodeResponse)
def issue_link_code(
    body: LinkCodeIssueRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Issue a one-time link code for the player (game client flow).

    1. Game calls POST /link/codes with the logged-in nickname
    2. Game renders link_url (e.g. as a QR code) with the expiry countdown
    3. Mobile app scans it and calls POST /link with the code

    Any previously pending code for the player stops working.
    """
    link_code = issue_link_code_use_case(db=db, nickname=body.nickname)
    expires_in = seconds_remaining(link_code, utc_now())

    _set_no_store(response)
    response.headers["X-Link-Code"] = link_code.code
    response.headers["X-Link-Expires-In"] = str(expires_in)

    return LinkCodeResponse(
        code=link_code.code,
        link_url=build_link_url(link_code.code, auto=body.auto),
        expires_at=as_utc(link_code.expires_at),
        expires_in=expires_in,
    )


@router.post("", response_model=LinkResponse)
def link_player(
    body: LinkRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Link the player behind a code to the current user."""
    enforce_link_resolve_rate_limit(request)
    player = resolve_link_code_use_case(db=db, code=body.code, user_id=current_user.id)
    return LinkResponse(
        message="Player linked successfully",
        user=UserBrief.model_validate(current_user),
        player=PlayerResponse.model_validate(player),
    )


@router.get("/me", response_model=PlayerResponse)
def get_my_player(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the player linked to the current user."""
    player = get_linked_player_use_case(db=db, user_id=current_user.id)
    return PlayerResponse.model_validate(player)


@router.delete("", response_model=UnlinkResponse)
def unlink_player(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Unlink the player owned by the current user."""
    player = unlink_player_use_case(db=db, user_id=current_user.id)
    return UnlinkResponse(message="Player unlinked", nickname=player.nickname)
