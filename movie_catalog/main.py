import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers tables on Base.metadata
from . import seeds
from .config import settings
from .database import Base, SessionLocal, engine
from .errors import CatalogError, InternalError
from .routes import auth as auth_routes
from .routes import movies as movies_routes
from .schemas import ApiInfo

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.version)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.on_event("startup")
def on_startup() -> None:
    """Create tables and reconcile the demo catalog before serving traffic."""
    if settings.uses_default_jwt_secret and not settings.is_development:
        logger.warning(
            "JWT_SECRET is not set; tokens are signed with the public default secret"
        )
    Base.metadata.create_all(bind=engine)
    if settings.seed_on_startup:
        seeds.reconcile_once(SessionLocal)
    logger.info("%s %s ready", settings.app_name, settings.version)


def _envelope(message: str, status_code: int, headers=None, **extra) -> JSONResponse:
    body = {"success": False, "message": message}
    body.update(extra)
    return JSONResponse(body, status_code=status_code, headers=headers)


def _internal_error(exc: Exception) -> JSONResponse:
    detail = str(exc) if settings.is_development else "Something went wrong"
    return _envelope(
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=detail,
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if isinstance(exc, InternalError):
        logger.error("Internal error: %s", exc.message, exc_info=exc)
        return _internal_error(exc)
    return _envelope(exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = ", ".join(
        f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return _envelope(message or "Invalid request", status.HTTP_400_BAD_REQUEST)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _envelope("Route not found", exc.status_code, path=request.url.path)
    return _envelope(
        str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled application error", exc_info=exc)
    return _internal_error(exc)


@app.get("/", response_model=ApiInfo)
def root():
    return ApiInfo(
        message=settings.app_name,
        version=settings.version,
        endpoints={
            "signup": "/api/signup",
            "login": "/api/login",
            "movies": "/api/movies",
        },
    )


app.include_router(auth_routes.router)
app.include_router(movies_routes.router)
