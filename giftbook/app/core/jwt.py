"""
Owner bearer tokens.

Tokens are issued by the identity service with the owner's numeric id in
the ``user_id`` claim. The ledger API shares its secret and algorithm to
verify them; ``issue_owner_token`` mints the same shape for local use.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from giftbook.app.core.config import settings


def issue_owner_token(owner_id: int, username: Optional[str] = None,
                      expires_delta: Optional[timedelta] = None) -> str:
    """Signed token carrying ``user_id`` (and ``sub`` when a username is given)."""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: Dict[str, Any] = {
        "user_id": owner_id,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    if username:
        claims["sub"] = username
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def read_owner_id(token: str) -> Optional[int]:
    """Owner id from a valid token; None if the token is bad, expired or has no integer ``user_id``."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    owner_id = claims.get("user_id")
    if not isinstance(owner_id, int) or isinstance(owner_id, bool):
        return None
    return owner_id
