"""
Authentication service handling user registration and login.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, Organizer, Attendee, ROLE_ORGANIZER
from app.schemas.user import UserCreate, UserLogin
from app.core.exceptions import BadRequest, Conflict, Forbidden, Unauthorized
from app.core.security import hash_password, verify_password, create_access_token
from app.core.logging import get_logger

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user with hashed password and create the role profile.
    Raises 409 if email or username already exists, 400 if an organizer
    has no organization name.
    """
    organization_name = (user_data.organization_name or "").strip()
    if user_data.role == ROLE_ORGANIZER and not organization_name:
        raise BadRequest("Organization name is required for organizers")

    # Check for existing email
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise Conflict("User with this email already exists")

    # Check for existing username
    result = await db.execute(select(User).where(User.username == user_data.username))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="username_exists", username=user_data.username)
        raise Conflict("Username already taken")

    user = User(
        name=user_data.name,
        email=user_data.email,
        username=user_data.username,
        hashed_password=hash_password(user_data.password),
        role=user_data.role,
    )
    db.add(user)
    await db.flush()

    if user.role == ROLE_ORGANIZER:
        db.add(Organizer(user_id=user.id, organization_name=organization_name))
    else:
        db.add(Attendee(user_id=user.id))
    await db.flush()

    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Authenticate user and return JWT access token.
    Raises 401 if credentials are invalid.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise Unauthorized("Invalid email or password")

    if not user.is_active:
        raise Forbidden("Account is deactivated")

    token = create_access_token(data={"sub": str(user.id)})
    logger.info("user_logged_in", user_id=user.id)
    return token


async def get_organizer_profile(db: AsyncSession, user: User) -> Optional[Organizer]:
    result = await db.execute(select(Organizer).where(Organizer.user_id == user.id))
    return result.scalar_one_or_none()


async def get_attendee_profile(db: AsyncSession, user: User) -> Optional[Attendee]:
    result = await db.execute(select(Attendee).where(Attendee.user_id == user.id))
    return result.scalar_one_or_none()
