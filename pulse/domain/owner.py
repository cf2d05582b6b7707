# pulse/domain/owner.py
from dataclasses import dataclass
from typing import Optional, Union

from pulse.domain.errors import ValidationError


@dataclass(frozen=True)
class UserOwner:
    user_id: int


@dataclass(frozen=True)
class GuestOwner:
    session_id: str


Owner = Union[UserOwner, GuestOwner]


def resolve_owner(user_id: Optional[int], session_id: Optional[str]) -> Owner:
    """Exactly one of user_id / session_id identifies a cart owner."""
    has_user = user_id is not None
    has_session = bool(session_id)

    if has_user == has_session:
        raise ValidationError("Exactly one of user ID or session ID is required")

    if has_user:
        return UserOwner(user_id=user_id)
    return GuestOwner(session_id=session_id)
