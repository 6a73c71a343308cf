import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Movie(Base):
    __tablename__ = "movies"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    genre = Column(String(255), nullable=False)
    director = Column(String(255), nullable=False)
    plot = Column(Text)
    poster_url = Column(String(2048))
    # Lookup only: removing a user leaves their movies in place.
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=_utcnow, nullable=False, index=True)
