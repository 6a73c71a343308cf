"""Demo catalog reconciliation.

Runs once at startup: upserts the demo movies by ``(title, year)``,
backfills missing poster URLs and removes blocked titles. Every phase is
best-effort; a failing phase is logged and the next one still runs.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .database import SessionLocal, session_scope
from .models import Movie
from .schemas import MovieSeed

logger = logging.getLogger(__name__)

DEMO_MOVIES = [
    {
        "title": "The Dark Knight",
        "year": 2008,
        "genre": "Action",
        "director": "Christopher Nolan",
        "plot": "Batman faces the Joker, a criminal mastermind who plunges Gotham into chaos.",
        "poster_url": "https://sm.ign.com/t/ign_latam/movie/t/the-dark-k/the-dark-knight_36qc.1200.jpg",
    },
    {
        "title": "Inception",
        "year": 2010,
        "genre": "Sci-Fi",
        "director": "Christopher Nolan",
        "plot": "A thief who steals corporate secrets through dream-sharing technology is tasked to plant an idea.",
        "poster_url": "https://m.media-amazon.com/images/I/51zUbui+gbL._AC_.jpg",
    },
    {
        "title": "Interstellar",
        "year": 2014,
        "genre": "Sci-Fi",
        "director": "Christopher Nolan",
        "plot": "Explorers travel through a wormhole to ensure humanity's survival.",
        "poster_url": "https://m.media-amazon.com/images/I/71yAz9T8ZyL._AC_SL1024_.jpg",
    },
    {
        "title": "The Shawshank Redemption",
        "year": 1994,
        "genre": "Drama",
        "director": "Frank Darabont",
        "plot": "Two imprisoned men bond over years, finding solace and redemption.",
        "poster_url": "https://m.media-amazon.com/images/I/519NBNHX5BL._AC_.jpg",
    },
    {
        "title": "The Godfather",
        "year": 1972,
        "genre": "Crime",
        "director": "Francis Ford Coppola",
        "plot": "A crime dynasty's aging patriarch transfers control to his reluctant son.",
        "poster_url": "https://m.media-amazon.com/images/I/41+eK8zBwQL._AC_.jpg",
    },
    {
        "title": "Parasite",
        "year": 2019,
        "genre": "Thriller",
        "director": "Bong Joon-ho",
        "plot": "Class tensions spiral between two families in a gripping thriller.",
        "poster_url": "https://m.media-amazon.com/images/I/71c05lTE03L._AC_SL1024_.jpg",
    },
    {
        "title": "Gladiator",
        "year": 2000,
        "genre": "Action / Drama",
        "director": "Ridley Scott",
        "plot": "A betrayed Roman general seeks vengeance as a gladiator.",
        "poster_url": "https://m.media-amazon.com/images/M/MV5BYWQ4YmNjYjEtOWE1Zi00Y2U4LWI4NTAtMTU0MjkxNWQ1ZmJiXkEyXkFqcGc@._V1_FMjpg_UX1000_.jpg",
    },
    {
        "title": "Avengers: Infinity War",
        "year": 2018,
        "genre": "Action / Sci-Fi",
        "director": "Anthony & Joe Russo",
        "plot": "The Avengers battle Thanos to stop his universe-ending plan.",
        "poster_url": "https://images-na.ssl-images-amazon.com/images/I/A1aHRPvn5JL._RI_.jpg",
    },
    {
        "title": "Joker",
        "year": 2019,
        "genre": "Drama / Thriller",
        "director": "Todd Phillips",
        "plot": "Arthur Fleck's descent into madness births the Joker.",
        "poster_url": "https://i.pinimg.com/originals/95/2e/b0/952eb064b99360a16dc258d3186a7e7f.png",
    },
    {
        "title": "Titanic",
        "year": 1997,
        "genre": "Drama / Romance",
        "director": "James Cameron",
        "plot": "A tragic romance aboard the ill-fated RMS Titanic.",
        "poster_url": "https://originalvintagemovieposters.com/wp-content/uploads/2020/02/TITANIC-8567-scaled.jpg",
    },
    {
        "title": "Avatar",
        "year": 2009,
        "genre": "Sci-Fi / Adventure",
        "director": "James Cameron",
        "plot": "A Marine on Pandora is torn between duty and a new home.",
        "poster_url": "https://static1.srcdn.com/wordpress/wp-content/uploads/2023/05/avater-the-way-of-water-poster.jpg",
    },
    {
        "title": "The Prestige",
        "year": 2006,
        "genre": "Mystery / Drama",
        "director": "Christopher Nolan",
        "plot": "Rival magicians engage in a dangerous battle of wits.",
        "poster_url": "https://c8.alamy.com/comp/DT67F9/hugh-jackman-scarlett-johansson-christian-bale-poster-the-prestige-DT67F9.jpg",
    },
    {
        "title": "Avengers: Endgame",
        "year": 2019,
        "genre": "Action / Sci-Fi",
        "director": "Anthony & Joe Russo",
        "plot": "The Avengers assemble for a final stand against Thanos.",
        "poster_url": "https://m.media-amazon.com/images/I/81ExhpBEbHL._AC_SL1500_.jpg",
    },
    {
        "title": "The Wolf of Wall Street",
        "year": 2013,
        "genre": "Biography / Comedy",
        "director": "Martin Scorsese",
        "plot": "Stockbroker Jordan Belfort rises and falls in excess.",
        "poster_url": "http://www.danielyeow.com/wp-content/uploads/TheWolfofWallStreet-poster.jpg",
    },
    {
        "title": "Dune: Part Two",
        "year": 2024,
        "genre": "Sci-Fi / Adventure",
        "director": "Denis Villeneuve",
        "plot": "Paul Atreides unites with the Fremen to wage war on Arrakis.",
        "poster_url": "https://m.media-amazon.com/images/I/81QYVQxH7lL._AC_SL1500_.jpg",
    },
    {
        "title": "Oppenheimer",
        "year": 2023,
        "genre": "Biography / Drama",
        "director": "Christopher Nolan",
        "plot": "The story of J. Robert Oppenheimer and the atomic bomb.",
        "poster_url": "https://images.wallpapersden.com/image/download/oppenheimer-2023-movie-poster_bmVpamqUmZqaraWkpJRmZ2dprWZnZ2k.jpg",
    },
]

BLOCKED_TITLES = [
    "Dune: Part Two",
    "Joker",
    "Interstellar",
    "Inception",
    "The Dark Knight",
    "Leo",
    "Money Heist",
    "Stranger Things",
    "Breaking Bad",
    "Friends",
    "The Crown",
    "The Social Network",
]


@dataclass(frozen=True)
class SeedCatalog:
    """Demo movies plus the titles that must never be present."""

    entries: Tuple[MovieSeed, ...]
    blocked_titles: FrozenSet[str]

    @classmethod
    def build(cls, movies: Iterable[dict], blocked: Iterable[str]) -> "SeedCatalog":
        return cls(
            entries=tuple(MovieSeed(**movie) for movie in movies),
            blocked_titles=frozenset(title.lower() for title in blocked),
        )

    def is_blocked(self, title: Optional[str]) -> bool:
        return str(title or "").lower() in self.blocked_titles

    def active_entries(self) -> Tuple[MovieSeed, ...]:
        return tuple(entry for entry in self.entries if not self.is_blocked(entry.title))

    def posters_by_title(self) -> Dict[str, str]:
        return {
            entry.title.lower(): entry.poster_url
            for entry in self.active_entries()
            if entry.poster_url
        }


@dataclass(frozen=True)
class ReconcileReport:
    upserted: int = 0
    backfilled: int = 0
    removed: int = 0


@lru_cache
def default_catalog() -> SeedCatalog:
    return SeedCatalog.build(DEMO_MOVIES, BLOCKED_TITLES)


def upsert_entries(session: Session, catalog: SeedCatalog) -> int:
    """Insert missing demo movies and refresh the poster of existing ones.

    Only ``poster_url`` is rewritten on an existing record; the remaining
    fields keep whatever was stored when the record was first inserted.
    """
    ensured = 0
    for entry in catalog.active_entries():
        movie = (
            session.query(Movie)
            .filter(Movie.title == entry.title, Movie.year == entry.year)
            .first()
        )
        if movie is None:
            session.add(
                Movie(
                    title=entry.title,
                    year=entry.year,
                    genre=entry.genre,
                    director=entry.director,
                    plot=entry.plot,
                    poster_url=entry.poster_url,
                )
            )
            # Flush so a duplicate entry later in the list finds this row.
            session.flush()
        elif entry.poster_url:
            movie.poster_url = entry.poster_url
        ensured += 1
    return ensured


def backfill_posters(session: Session, catalog: SeedCatalog) -> int:
    posters = catalog.posters_by_title()
    missing = (
        session.query(Movie)
        .filter(or_(Movie.poster_url.is_(None), Movie.poster_url == ""))
        .all()
    )
    filled = 0
    for movie in missing:
        poster = posters.get(str(movie.title or "").lower())
        if poster:
            movie.poster_url = poster
            filled += 1
    return filled


def remove_blocked(session: Session, catalog: SeedCatalog) -> int:
    if not catalog.blocked_titles:
        return 0
    doomed = [movie for movie in session.query(Movie).all() if catalog.is_blocked(movie.title)]
    for movie in doomed:
        session.delete(movie)
    return len(doomed)


def _run_phase(
    name: str,
    phase: Callable[[Session, SeedCatalog], int],
    session_factory,
    catalog: SeedCatalog,
) -> int:
    try:
        with session_scope(session_factory) as session:
            return phase(session, catalog)
    except Exception as exc:
        logger.warning("Movie seeding skipped (%s): %s", name, exc)
        return 0


def reconcile(session_factory=SessionLocal, catalog: Optional[SeedCatalog] = None) -> ReconcileReport:
    """Bring the movie table in line with the demo catalog.

    Safe to repeat: a second run inserts nothing new and leaves non-poster
    fields untouched.
    """
    catalog = catalog or default_catalog()
    report = ReconcileReport(
        upserted=_run_phase("upsert", upsert_entries, session_factory, catalog),
        backfilled=_run_phase("backfill", backfill_posters, session_factory, catalog),
        removed=_run_phase("cleanup", remove_blocked, session_factory, catalog),
    )
    if report.upserted:
        logger.info("Ensured %d movie record(s)", report.upserted)
    if report.backfilled:
        logger.info("Backfilled %d poster URL(s)", report.backfilled)
    if report.removed:
        logger.info("Removed %d blocked title(s)", report.removed)
    return report


_reconcile_lock = threading.Lock()
_reconciled = False


def reconcile_once(session_factory=SessionLocal, catalog: Optional[SeedCatalog] = None) -> Optional[ReconcileReport]:
    """Run :func:`reconcile` at most once per process.

    Returns None when it has already run.
    """
    global _reconciled
    with _reconcile_lock:
        if _reconciled:
            logger.info("Movie reconciliation already ran in this process")
            return None
        _reconciled = True
        try:
            catalog = catalog or default_catalog()
        except ValueError as exc:
            logger.warning("Movie seeding skipped: %s", exc)
            return None
        return reconcile(session_factory, catalog)
