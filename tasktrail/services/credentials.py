import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tasktrail.exceptions import Conflict, Unauthorized
from tasktrail.models.user import User
from tasktrail.utils.auth import hash_password, verify_password, create_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _issue(user: User) -> dict:
    return {"token": create_token(user.id, user.email), "token_type": "bearer", "user": user}


def register(db: Session, email: str, password: str, name: str) -> dict:
    email = email.lower()
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already registered")

    user = User(email=email, password_hash=hash_password(password), name=name)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration of the same email
        db.rollback()
        raise Conflict("Email already registered")
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return _issue(user)


def login(db: Session, email: str, password: str) -> dict:
    """Same failure for unknown email and wrong password, so accounts can't be enumerated."""
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise Unauthorized(INVALID_CREDENTIALS)
    return _issue(user)
