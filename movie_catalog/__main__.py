import uvicorn

from .config import settings


def main() -> None:
    # uvicorn exits the process if the port cannot be bound.
    uvicorn.run("movie_catalog.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
