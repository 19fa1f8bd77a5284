import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.models.models import User

logger = logging.getLogger("uvicorn.error")


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    res = await session.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()


async def get_or_create_user_by_email(
    session: AsyncSession, email: str, display_name: Optional[str] = None
) -> User:
    """Resolve the user for email-keyed (legacy) flows, creating a passwordless one if missing."""
    user = await get_user_by_email(session, email)
    if user:
        return user
    name = display_name or email.split("@")[0]
    user = User(email=email, name=name, display_name=name)
    session.add(user)
    await session.flush()
    logger.info("users: created user_id=%s email=%s", user.id, email)
    return user


def owner_display_name(user: User) -> str:
    return user.display_name or user.name or (user.email or "").split("@")[0]
