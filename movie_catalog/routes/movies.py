from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db

router = APIRouter(prefix="/api/movies", tags=["movies"])

DISABLED_RESPONSES = {405: {"model": schemas.ErrorResponse}}


@router.get("", response_model=schemas.MovieListResponse)
def list_movies(db: Session = Depends(get_db)):
    movies = crud.list_movies(db)
    return schemas.MovieListResponse(
        count=len(movies),
        movies=[schemas.MovieOut.model_validate(movie) for movie in movies],
    )


@router.get(
    "/{movie_id}",
    response_model=schemas.MovieResponse,
    responses={404: {"model": schemas.ErrorResponse}},
)
def get_movie(movie_id: str, db: Session = Depends(get_db)):
    movie = crud.get_movie(db, movie_id)
    return schemas.MovieResponse(movie=schemas.MovieOut.model_validate(movie))


# Write routes take no body or session: they are rejected before any parsing.


@router.post("", responses=DISABLED_RESPONSES)
def create_movie():
    crud.create_movie()


@router.put("/{movie_id}", responses=DISABLED_RESPONSES)
def update_movie(movie_id: str):
    crud.update_movie(movie_id)


@router.delete("/{movie_id}", responses=DISABLED_RESPONSES)
def delete_movie(movie_id: str):
    crud.delete_movie(movie_id)
