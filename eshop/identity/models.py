import enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict


class TokenStatus(str, enum.Enum):
    INVALID = "Invalid"
    EXPIRED = "Expired"


class Authenticated(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int


class Guest(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


Identity = Union[Authenticated, Guest]


class ResolvedIdentity(BaseModel):
    """Outcome of resolving a request's caller.

    token_status is set when a bearer token was presented but could not be
    honoured, the request then carries on as a guest.
    """
    model_config = ConfigDict(frozen=True)

    identity: Identity
    token_status: Optional[TokenStatus] = None
    guest_token_issued: bool = False
