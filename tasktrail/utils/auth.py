import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Optional

from fastapi import Depends, Header
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from tasktrail import config
from tasktrail.database import get_db
from tasktrail.exceptions import Unauthorized
from tasktrail.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__default_rounds=config.BCRYPT_ROUNDS
)


@dataclass(frozen=True)
class Principal:
    """Verified caller identity, taken from a signed token and passed into every task operation."""

    user_id: str
    email: str


def hash_password(password: str):
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    """
    if len(password.encode("utf-8")) > 72:
        raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_token(user_id: str, email: str) -> str:
    # expiry and secret are read at call time so runtime overrides take effect
    expire = datetime.now(UTC) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": user_id, "email": email, "exp": int(expire.timestamp())}
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def validate_token(token: str) -> Principal:
    try:
        # jwt.decode validates exp automatically
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except JWTError:
        raise Unauthorized("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token: missing subject")
    return Principal(user_id=user_id, email=payload.get("email", ""))


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


def get_current_principal(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Principal:
    token = _extract_bearer(authorization)
    if not token:
        raise Unauthorized("Missing bearer token")

    principal = validate_token(token)
    if db.get(User, principal.user_id) is None:
        logger.warning("Token presented for unknown user %s", principal.user_id)
        raise Unauthorized("Invalid token")
    return principal
