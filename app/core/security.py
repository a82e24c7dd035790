"""Password hashing and bearer token signing (JWT, stateless)."""
import time
from dataclasses import dataclass
from typing import Callable

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.exceptions import (
    HashingError,
    MalformedHashError,
    TokenExpiredError,
    TokenInvalidError,
)

# bcrypt cost factor 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

# bcrypt hard limit: 72 bytes (UTF-8)
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    try:
        return pwd_context.hash(password)
    except (ValueError, TypeError, OSError, RuntimeError) as exc:
        raise HashingError(f"bcrypt hashing failed: {type(exc).__name__}") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True on match, False on mismatch; raise MalformedHashError for a bad hash."""
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError) as exc:
        raise MalformedHashError() from exc


@dataclass(frozen=True)
class TokenIdentity:
    user_id: int
    username: str


class TokenIssuer:
    """Mint and verify access tokens: {sub, username, iat, exp}, HS256 by default.

    Expiry is checked here rather than by python-jose so that a token is
    rejected exactly at ``exp`` (jose accepts ``now == exp``).
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_hours: int = 24,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime_seconds = expire_hours * 3600
        self._clock = clock

    def issue(self, user_id: int, username: str) -> str:
        now = int(self._clock())
        claims = {
            "sub": str(user_id),
            "username": username,
            "iat": now,
            "exp": now + self.lifetime_seconds,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenIdentity:
        if not token:
            raise TokenInvalidError()
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise TokenInvalidError() from exc

        try:
            user_id = int(payload["sub"])
            username = str(payload["username"])
            expires_at = int(payload["exp"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalidError() from exc

        if self._clock() >= expires_at:
            raise TokenExpiredError()
        return TokenIdentity(user_id=user_id, username=username)
