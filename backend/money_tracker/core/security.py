from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from money_tracker.core.config import settings

# CryptContext handles password hashing using bcrypt
# bcrypt generates a salt per hash, so equal passwords hash differently
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)


class InvalidToken(Exception):
    """Token is malformed, tampered with, expired, or missing required claims"""


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str


class TokenService:
    """
    Issues and verifies stateless JWT access tokens.

    Tokens are never stored server-side, so one stays valid until its exp
    claim passes even if the account changes in the meantime.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.expires_delta = timedelta(minutes=expire_minutes)

    def issue(self, identity: Identity, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed token carrying the identity with an expiration"""
        issued_at = datetime.now(timezone.utc)
        expire = issued_at + (expires_delta if expires_delta is not None else self.expires_delta)
        claims = {
            "sub": str(identity.user_id),
            "email": identity.email,
            "iat": issued_at,
            "exp": expire,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        """Decode the token and return its identity, or raise InvalidToken"""
        try:
            # Verifies signature and exp; leeway is zero
            payload: dict[str, Any] = jwt.decode(
                token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as e:
            raise InvalidToken(str(e)) from e

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            raise InvalidToken("Token has no expiration")
        # jose accepts a token at exactly exp; a token is dead from exp onwards
        if datetime.now(timezone.utc) >= datetime.fromtimestamp(exp, tz=timezone.utc):
            raise InvalidToken("Token has expired")

        email = payload.get("email")
        if not isinstance(email, str) or not email:
            raise InvalidToken("Token has no email claim")

        # Token stores the user ID as a string (JWT 'sub' claim)
        try:
            user_id = int(payload.get("sub"))
        except (ValueError, TypeError):
            raise InvalidToken("Token has an invalid subject claim")

        return Identity(user_id=user_id, email=email)
