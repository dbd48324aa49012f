"""
Authentication dependencies for FastAPI.

Identifies the calling owner from the bearer token. Whether that owner still
exists is checked by the owner resolver before any write.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from giftbook.app.core.exceptions import AuthenticationError
from giftbook.app.core.jwt import read_owner_id

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_owner_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> int:
    """
    FastAPI dependency returning the owner id of the authenticated caller.

    Args:
        credentials: HTTP Bearer token from request header

    Returns:
        The ``user_id`` claim of the token

    Raises:
        AuthenticationError: 401 if the token is invalid, expired or has no user_id
    """
    owner_id = read_owner_id(credentials.credentials)
    if owner_id is None:
        raise AuthenticationError()

    return owner_id
