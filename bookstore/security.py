"""
Security helpers for the bookstore inventory.

Handles:
- Password hashing (passlib)
- Bearer token issue/decode (python-jose)
- The access gate consulted before every inventory operation
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from jose import JWTError, jwt
from loguru import logger
from passlib.context import CryptContext

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def create_access_token(
    data: dict,
    secret_key: str,
    algorithm: str = ALGORITHM,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a signed bearer token.

    Args:
        data: Claims; ``sub`` names the user
        secret_key: Signing key
        algorithm: JWS algorithm
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str = ALGORITHM) -> dict:
    """
    Decode and verify a bearer token.

    Raises:
        JWTError: bad signature, malformed or expired token
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])


# =============================================================================
# Access Gate
# =============================================================================

@dataclass(frozen=True)
class AccessVerdict:
    """Outcome of a credential check."""

    allowed: bool
    subject: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls, subject: Optional[str] = None) -> "AccessVerdict":
        return cls(allowed=True, subject=subject)

    @classmethod
    def deny(cls, reason: str) -> "AccessVerdict":
        return cls(allowed=False, reason=reason)


class AccessGate(Protocol):
    """Anything that can turn a bearer credential into a verdict."""

    def verify(self, credential: Optional[str]) -> AccessVerdict:
        ...


class JWTAccessGate:
    """
    Access gate backed by signed bearer tokens.

    Usage:
        gate = JWTAccessGate(secret_key="...", user_lookup=users.is_active)
        verdict = gate.verify(token)
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = ALGORITHM,
        user_lookup: Optional[Callable[[str], bool]] = None,
    ):
        """
        Args:
            secret_key: Key the tokens were signed with
            algorithm: JWS algorithm
            user_lookup: Optional check that the token subject still exists
        """
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.user_lookup = user_lookup

    def verify(self, credential: Optional[str]) -> AccessVerdict:
        if not credential:
            return AccessVerdict.deny("Access denied. No token provided.")

        try:
            payload = decode_access_token(credential, self.secret_key, self.algorithm)
        except JWTError as e:
            logger.debug(f"Rejected token: {e}")
            return AccessVerdict.deny("Invalid or expired token")

        subject = payload.get("sub")
        if not subject:
            return AccessVerdict.deny("Invalid or expired token")

        if self.user_lookup is not None and not self.user_lookup(subject):
            return AccessVerdict.deny("User no longer exists or is disabled")

        return AccessVerdict.allow(subject)
