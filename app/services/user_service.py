"""
User service — the users table is fed by the identity boundary.

Users are never created through a public endpoint: the first request
carrying a valid token for an unseen subject provisions the row from the
token's claims.  A soft-deleted user is treated as unknown.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import User, isoformat

logger = logging.getLogger(__name__)


def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "created_at": isoformat(user.created_at),
    }


async def get_user(db: AsyncSession, user_id: str) -> dict | None:
    """Return the serialised user, or None when missing or soft-deleted."""
    result = await db.execute(
        select(User).where(User.id == user_id, User.deleted_at.is_(None))
    )
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def ensure_user(
    db: AsyncSession,
    user_id: str,
    email: str | None = None,
    name: str | None = None,
) -> User | None:
    """
    Return the User for *user_id*, creating it on first sight.

    Returns None when the user exists but is soft-deleted, or when the
    claimed email already belongs to a different user (email is unique).
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is not None:
        if user.deleted_at is not None:
            logger.warning("Rejected request for deleted user", extra={"user_id": user_id})
            return None
        return user

    email = email or f"{user_id}@users.invalid"
    taken = await db.execute(select(User.id).where(User.email == email))
    if taken.scalar_one_or_none() is not None:
        logger.warning("Email already bound to another user", extra={"user_id": user_id})
        return None

    user = User(id=user_id, email=email, name=name or email)
    db.add(user)
    await db.flush()
    logger.info("User provisioned", extra={"user_id": user_id})
    return user
