"""
Owner resolution.

Confirms the owner id carried by the caller still refers to an active
account before anything is written on its behalf.
"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from giftbook.app.core.exceptions import OwnerNotFoundError, StorageError
from giftbook.app.models.user import User

logger = logging.getLogger(__name__)


async def ensure_owner(db: AsyncSession, owner_id: int) -> User:
    """
    Return the active owner account or raise OwnerNotFoundError.

    Inactive accounts are reported exactly like missing ones.
    """
    try:
        result = await db.execute(
            select(User).where(User.id == owner_id, User.is_active == True)
        )
        owner = result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.exception("Owner lookup failed for owner_id=%s", owner_id)
        raise StorageError("resolve_owner") from exc

    if owner is None:
        raise OwnerNotFoundError(owner_id)
    return owner
