import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import crud, models
from .config import settings
from .errors import AuthError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user: models.User, now: Optional[datetime] = None) -> str:
    """Sign a token carrying the user id and email, valid for the configured TTL."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "userId": user.id,
        "email": user.email,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.token_ttl_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.PyJWTError as exc:
        raise AuthError("Invalid or expired token") from exc


def signup(
    db: Session,
    full_name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
) -> Tuple[str, models.User]:
    """Register a user and return ``(token, user)``.

    Raises:
        ValidationError: a field is missing, the passwords differ or the
            password is too short.
        ConflictError: the email is already registered.
    """
    if not full_name or not email or not password or not confirm_password:
        raise ValidationError("All fields are required")
    if password != confirm_password:
        raise ValidationError("Password and confirm password do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    if crud.get_user_by_email(db, email) is not None:
        raise ConflictError(crud.DUPLICATE_EMAIL_MESSAGE)

    user = crud.create_user(
        db,
        full_name=full_name,
        email=email,
        password_hash=hash_password(password),
    )
    logger.info("Registered user %s", user.id)
    return create_access_token(user), user


def login(
    db: Session, email: Optional[str], password: Optional[str]
) -> Tuple[str, models.User]:
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = crud.get_user_by_email(db, email)
    if user is None:
        # Keep the response time close to a real hash check.
        pwd_context.dummy_verify()
        raise AuthError(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(password, user.password_hash):
        raise AuthError(INVALID_CREDENTIALS_MESSAGE)

    return create_access_token(user), user
