from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator
from pydantic.alias_generators import to_camel

MIN_MOVIE_YEAR = 1888
POSTER_URL_PATTERN = r"^https?://.+"


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----- Auth Schemas -----


class SignupRequest(CamelModel):
    # Presence is checked by the authenticator so that every missing field
    # produces the same 400 message.
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserPublic(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    full_name: str
    email: str


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    user: UserPublic


# ----- Movie Schemas -----


class MovieOut(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    title: str
    year: int
    genre: str
    director: str
    plot: Optional[str] = None
    poster_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


class MovieListResponse(CamelModel):
    success: bool = True
    count: int
    movies: List[MovieOut]


class MovieResponse(CamelModel):
    success: bool = True
    movie: MovieOut


class MovieSeed(BaseModel):
    """One entry of the demo catalog, checked against the movie field rules."""

    model_config = ConfigDict(frozen=True)

    title: constr(strip_whitespace=True, min_length=1)
    year: int
    genre: constr(strip_whitespace=True, min_length=1)
    director: constr(strip_whitespace=True, min_length=1)
    plot: Optional[constr(strip_whitespace=True, max_length=1000)] = None
    poster_url: Optional[
        constr(strip_whitespace=True, pattern=POSTER_URL_PATTERN)
    ] = None

    @field_validator("year")
    @classmethod
    def validate_year(cls, value: int) -> int:
        max_year = date.today().year + 1
        if value < MIN_MOVIE_YEAR:
            raise ValueError(f"Year must be at least {MIN_MOVIE_YEAR}")
        if value > max_year:
            raise ValueError("Year cannot be in the future")
        return value


# ----- Envelopes -----


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: Optional[str] = None
    path: Optional[str] = None


class ApiInfo(BaseModel):
    success: bool = True
    message: str
    version: str
    endpoints: dict = Field(default_factory=dict)
