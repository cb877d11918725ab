import argparse
import json
import logging
import os
from datetime import datetime
from pathlib import Path

import pandas as pd
from tqdm import tqdm

from app.config.paths import MOVIES_PATH
from app.db.database import SessionLocal, engine, Base
from app.db.models import MovieORM
from app.repositories import (
    SQLAlchemyMovieRepo,
    SQLAlchemyRatingRepo,
    SQLAlchemyReviewRepo,
    SQLAlchemyUserRepo
)
from app.service.aggregation_service import AggregationService
from app.service.auth_service import AuthService
from app.exceptions.auth import UserAlreadyExistsException


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['title', 'description', 'release_year', 'duration', 'country', 'poster_url']
OPTIONAL_COLUMNS = ['original_title', 'language', 'background_url', 'trailer_url']


def _optional(row, column):
    if column not in row or pd.isna(row[column]):
        return None
    return str(row[column])


def import_movies_from_csv(csv_path: Path, batch_size: int = 100) -> tuple[int, int, int]:
    """Import movies from a CSV file.

    Genres are pipe separated ("Drama|Crime"). A row whose (title, release_year)
    already exists is skipped, so the import can be re-run safely. Imported
    movies always start with empty stats.

    Returns:
        tuple: (added_count, skipped_count, total_count)
    """
    db_session = SessionLocal()

    try:
        logger.info(f"Reading movies from {csv_path}...")
        movies = pd.read_csv(csv_path)

        missing = [c for c in REQUIRED_COLUMNS if c not in movies.columns]
        if missing:
            raise ValueError(f"Movies CSV is missing columns: {', '.join(missing)}")

        initial_count = len(movies)

        movies = movies.drop_duplicates(subset=['title', 'release_year'], keep='first')
        logger.info(f"After deduplication: {len(movies)} movies kept (removed {initial_count - len(movies)} duplicates)")

        # Clean data
        before_cleaning = len(movies)
        movies = movies.dropna(subset=REQUIRED_COLUMNS)
        if len(movies) < before_cleaning:
            logger.info(f"Removed {before_cleaning - len(movies)} movies with missing required fields.")

        total = len(movies)
        added = 0
        skipped = 0
        batch_counter = 0

        logger.info(f"Processing {total} movies...")
        for _, row in tqdm(movies.iterrows(), total=total, desc="Importing movies"):
            try:
                title = str(row['title']).strip()
                release_year = int(row['release_year'])

                existing = db_session.query(MovieORM).filter(
                    MovieORM.title == title,
                    MovieORM.release_year == release_year
                ).first()
                if existing is not None:
                    skipped += 1
                    continue

                genres = _optional(row, 'genres')
                genre_names = [g.strip() for g in genres.split('|') if g.strip()] if genres else []

                db_session.add(MovieORM(
                    title=title,
                    original_title=_optional(row, 'original_title'),
                    description=str(row['description']),
                    release_year=release_year,
                    duration=int(row['duration']),
                    country=str(row['country']),
                    language=_optional(row, 'language') or "English",
                    poster_url=str(row['poster_url']),
                    background_url=_optional(row, 'background_url'),
                    trailer_url=_optional(row, 'trailer_url'),
                    genres=json.dumps([{"name": g} for g in genre_names]),
                    views=0,
                    is_active=True,
                    average_rating=0.0,
                    total_ratings=0,
                    total_reviews=0,
                    created_at=datetime.now()
                ))
                db_session.flush()
                added += 1
                batch_counter += 1

                if batch_counter >= batch_size:
                    db_session.commit()
                    batch_counter = 0

            except Exception as e:
                db_session.rollback()
                skipped += 1
                logger.error(f"Error adding movie {row['title']}: {e}")
                batch_counter = 0

        if batch_counter > 0:
            db_session.commit()

        logger.info(f"Movie import summary: {added} added, {skipped} skipped, {total} total")
        return added, skipped, total

    except Exception as e:
        db_session.rollback()
        logger.error(f"Error importing movies: {e}")
        raise

    finally:
        db_session.close()


def create_admin(username: str, email: str, password: str):
    """Register an admin account, or promote the user if the username is taken."""
    db_session = SessionLocal()
    try:
        auth_service = AuthService(SQLAlchemyUserRepo(db_session), db_session)
        try:
            return auth_service.register_user(username, email, password, is_admin=True)
        except UserAlreadyExistsException:
            return auth_service.promote_to_admin(username)
    finally:
        db_session.close()


def reconcile_stats() -> int:
    db_session = SessionLocal()
    try:
        aggregation_service = AggregationService(
            movie_repo=SQLAlchemyMovieRepo(db_session),
            rating_repo=SQLAlchemyRatingRepo(db_session),
            review_repo=SQLAlchemyReviewRepo(db_session),
            session=db_session
        )
        corrected = aggregation_service.recompute_all()
        logger.info(f"Reconciled movie stats, {corrected} movies corrected")
        return corrected
    finally:
        db_session.close()


def purge_database():
    """Purge all data from the database."""
    logger.info("Purging database...")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Database purged successfully")


def import_all(csv_path: Path = MOVIES_PATH, purge: bool = False):
    if purge:
        purge_database()
    else:
        Base.metadata.create_all(bind=engine)

    import_movies_from_csv(csv_path)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the movie catalog")
    parser.add_argument("--csv", type=Path, default=MOVIES_PATH)
    parser.add_argument("--purge", action="store_true", help="drop and recreate all tables first")
    parser.add_argument("--reconcile", action="store_true", help="recompute stored movie stats afterwards")
    parser.add_argument("--admin", help="username of an admin account to create or promote")
    parser.add_argument("--admin-email")
    args = parser.parse_args()

    import_all(args.csv, purge=args.purge)

    if args.admin:
        admin_password = os.getenv("ADMIN_PASSWORD")
        if not admin_password:
            parser.error("ADMIN_PASSWORD must be set to create an admin account")
        create_admin(args.admin, args.admin_email or f"{args.admin}@example.com", admin_password)

    if args.reconcile:
        reconcile_stats()
