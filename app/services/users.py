"""User directory and the register / login flows built on top of it."""
import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    ValidationError,
)
from app.core.security import BCRYPT_MAX_BYTES, TokenIssuer, hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class UserDirectory:
    """Lookup and insert of user records."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def insert(self, username: str, email: str, password_hash: str) -> int:
        """Insert a user and return its id.

        The pre-check gives the friendly error early; the unique index on
        ``users.username`` settles concurrent registrations.
        """
        if await self.find_by_username(username) is not None:
            raise DuplicateUsernameError()

        user = User(username=username, email=email, hashed_password=password_hash)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateUsernameError() from exc
        await self.db.refresh(user)
        return user.id


def _clean(value: str | None) -> str:
    return (value or "").strip()


async def register_user(
    directory: UserDirectory,
    username: str | None,
    email: str | None,
    password: str | None,
) -> int:
    """Validate input, hash the password and store the user. No token is issued."""
    username = _clean(username)
    email = _clean(email)
    pwd = password or ""

    if not username or not email or not pwd:
        raise ValidationError("Please fill all fields")

    if len(pwd) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if len(pwd.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")

    if await directory.find_by_username(username) is not None:
        raise DuplicateUsernameError()

    hashed = await run_in_threadpool(hash_password, pwd)
    user_id = await directory.insert(username, email, hashed)
    logger.info("Registered user id=%s username=%s", user_id, username)
    return user_id


async def authenticate_user(
    directory: UserDirectory,
    issuer: TokenIssuer,
    username: str | None,
    password: str | None,
) -> tuple[str, User]:
    """Check credentials and return (token, user).

    Unknown user and wrong password raise the same InvalidCredentialsError.
    """
    username = _clean(username)
    pwd = password or ""
    if not username or not pwd:
        raise ValidationError("Please enter username and password")

    user = await directory.find_by_username(username)
    if user is None:
        logger.info("Login failed for username=%s", username)
        raise InvalidCredentialsError()

    if not await run_in_threadpool(verify_password, pwd, user.hashed_password):
        logger.info("Login failed for username=%s", username)
        raise InvalidCredentialsError()

    token = issuer.issue(user.id, user.username)
    return token, user
