# pulse/api/deps.py
import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request, Response
from sqlalchemy.orm import Session

from pulse.data.database import get_db
from pulse.domain.errors import ForbiddenError, RateLimitError
from pulse.services.auth_service import AuthService
from pulse.utils import settings
from pulse.utils.logging import set_request_context

BEARER_PREFIX = "Bearer "

__all__ = ["get_db", "require_admin", "get_current_user", "enforce_rate_limit"]


def require_admin(x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")) -> None:
    """Static shared secret, compared in constant time."""
    expected = settings.ADMIN_KEY
    if not expected or not x_admin_key:
        raise ForbiddenError("Unauthorized access")
    if not secrets.compare_digest(x_admin_key.encode("utf-8"), expected.encode("utf-8")):
        raise ForbiddenError("Unauthorized access")


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    claims = AuthService(db).verify_token(_bearer_token(authorization))
    set_request_context(user_id=str(claims["user_id"]))
    return claims


def enforce_rate_limit(request: Request, response: Response) -> None:
    if not settings.RATE_LIMIT_ENABLED:
        return

    client = request.client.host if request.client else "unknown"
    result = request.app.state.rate_limiter.hit(client)

    if not result.allowed:
        raise RateLimitError(
            "Too many requests from this IP, please try again later.",
            retry_after=result.reset_in,
        )

    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
