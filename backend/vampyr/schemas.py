"""Pydantic schemas for API."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from uuid import UUID


NICKNAME_PATTERN = r"^[A-Za-z0-9_]+$"


class UserBrief(BaseModel):
    """Brief user info for nested responses."""
    id: UUID
    username: str
    name: str
    email: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


# Player schemas
class PlayerLoginRequest(BaseModel):
    nickname: str = Field(min_length=3, max_length=20, pattern=NICKNAME_PATTERN)


class PlayerResponse(BaseModel):
    id: int
    nickname: str
    level: int
    enemies_defeated: int
    defeats: int
    play_time: int
    is_linked: bool
    model_config = ConfigDict(from_attributes=True)


class PlayerLoginResponse(BaseModel):
    message: str
    created: bool
    player: PlayerResponse


class PlayerStatusResponse(BaseModel):
    exists: bool
    is_linked: bool = False
    player: Optional[PlayerResponse] = None
    message: str


# Link schemas
class LinkCodeIssueRequest(BaseModel):
    nickname: str = Field(min_length=1, max_length=20)
    # Ask the mobile app to submit the code without confirmation.
    auto: bool = False


class LinkCodeResponse(BaseModel):
    code: str
    link_url: str
    expires_at: datetime
    expires_in: int


class LinkRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: str = Field(min_length=1, max_length=16)


class LinkResponse(BaseModel):
    message: str
    user: UserBrief
    player: PlayerResponse


class UnlinkResponse(BaseModel):
    message: str
    nickname: str
