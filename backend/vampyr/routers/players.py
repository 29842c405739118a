"""Game client endpoints (nickname identity only)."""
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import PlayerLoginRequest, PlayerLoginResponse, PlayerResponse, PlayerStatusResponse
from ..use_cases.players import game_login_use_case, get_player_status_use_case

router = APIRouter(prefix="/players", tags=["players"])


@router.post("/login", response_model=PlayerLoginResponse)
def game_login(
    body: PlayerLoginRequest,
    db: Session = Depends(get_db),
):
    """Log in from the game by nickname, creating the player on first use."""
    player, created = game_login_use_case(db=db, nickname=body.nickname)
    return PlayerLoginResponse(
        message="Welcome, new player!" if created else "Welcome back!",
        created=created,
        player=PlayerResponse.model_validate(player),
    )


@router.get("/check/{nickname}", response_model=PlayerStatusResponse)
def check_player(
    nickname: str = Path(min_length=1, max_length=20),
    db: Session = Depends(get_db),
):
    """Check whether a player exists and whether it is available for linking."""
    player = get_player_status_use_case(db=db, nickname=nickname)
    if not player:
        return PlayerStatusResponse(
            exists=False,
            message="Player does not exist. Create the profile in the game first.",
        )
    return PlayerStatusResponse(
        exists=True,
        is_linked=player.is_linked,
        player=PlayerResponse.model_validate(player),
        message=(
            "Player is already linked to an account"
            if player.is_linked
            else "Player is available for linking"
        ),
    )
