from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import auth, schemas
from ..database import get_db

router = APIRouter(prefix="/api", tags=["auth"])

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse},
    500: {"model": schemas.ErrorResponse},
}


# Plain ``def`` handlers run in FastAPI's threadpool, keeping bcrypt off the event loop.
@router.post(
    "/signup",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ERROR_RESPONSES, 409: {"model": schemas.ErrorResponse}},
)
def signup(
    payload: Optional[schemas.SignupRequest] = None, db: Session = Depends(get_db)
):
    # An absent body is treated like an empty one.
    payload = payload or schemas.SignupRequest()
    token, user = auth.signup(
        db,
        full_name=payload.full_name,
        email=payload.email,
        password=payload.password,
        confirm_password=payload.confirm_password,
    )
    return schemas.AuthResponse(
        message="User created successfully",
        token=token,
        user=schemas.UserPublic.model_validate(user),
    )


@router.post(
    "/login",
    response_model=schemas.AuthResponse,
    responses={**ERROR_RESPONSES, 401: {"model": schemas.ErrorResponse}},
)
def login(
    payload: Optional[schemas.LoginRequest] = None, db: Session = Depends(get_db)
):
    payload = payload or schemas.LoginRequest()
    token, user = auth.login(db, email=payload.email, password=payload.password)
    return schemas.AuthResponse(
        message="Login successful",
        token=token,
        user=schemas.UserPublic.model_validate(user),
    )
