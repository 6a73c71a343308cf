import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .errors import ConflictError, InternalError, MethodDisabledError, NotFoundError

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"
MOVIE_NOT_FOUND_MESSAGE = "Movie not found"


# ----- Users -----


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(
    db: Session, full_name: str, email: str, password_hash: str
) -> models.User:
    """Persist a new user.

    A unique-constraint violation means another request registered the same
    email between our lookup and this insert; it surfaces as ConflictError.
    """
    user = models.User(full_name=full_name, email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError("Database commit failed") from exc

    db.refresh(user)
    return user


# ----- Movies -----


def list_movies(db: Session) -> List[models.Movie]:
    """Return every movie, newest first."""
    return (
        db.query(models.Movie)
        .order_by(models.Movie.created_at.desc(), models.Movie.id)
        .all()
    )


def get_movie(db: Session, movie_id: str) -> models.Movie:
    """Return one movie by id.

    Malformed ids and unknown ids raise the same NotFoundError.
    """
    try:
        normalized = str(uuid.UUID(str(movie_id)))
    except ValueError:
        raise NotFoundError(MOVIE_NOT_FOUND_MESSAGE)

    movie = db.query(models.Movie).filter(models.Movie.id == normalized).first()
    if movie is None:
        raise NotFoundError(MOVIE_NOT_FOUND_MESSAGE)
    return movie


def create_movie(*args, **kwargs) -> models.Movie:
    raise MethodDisabledError("Creating movies is disabled")


def update_movie(movie_id: str, *args, **kwargs) -> models.Movie:
    raise MethodDisabledError("Updating movies is disabled")


def delete_movie(movie_id: str, *args, **kwargs) -> None:
    raise MethodDisabledError("Deleting movies is disabled")
