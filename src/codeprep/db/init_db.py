import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.crud_daily_challenge import daily_challenge as crud_daily_challenge
from src.codeprep.db.session import AsyncSessionLocal
from src.codeprep.models import Base, Problem
from src.codeprep.models.base import utcnow
from src.codeprep.schemas import ProblemCreate

logger = logging.getLogger(__name__)

SEED_DIR = Path(__file__).parent / "seed"


async def _create_tables(db: AsyncSession) -> None:
    """Create missing tables on the session's connection."""
    connection = await db.connection()
    await connection.run_sync(Base.metadata.create_all)


async def _create_problems(db: AsyncSession, problems_dir: Path = SEED_DIR / "problems") -> int:
    """Create problems from JSON seed files if they don't exist.

    A problem is matched by title; existing ones are left untouched.

    Args:
        db: Database session
        problems_dir: Directory of ``*.json`` files, one problem each

    Returns:
        int: Number of problems created
    """
    if not problems_dir.exists():
        logger.info("No problems seed directory found - skipping problem creation")
        return 0

    created = 0
    for problem_file in sorted(problems_dir.glob("*.json")):
        try:
            with open(problem_file, "r") as f:
                problem_in = ProblemCreate.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Error reading problem file {problem_file}: {e}")
            continue

        result = await db.execute(select(Problem.id).where(Problem.title == problem_in.title))
        if result.scalar():
            logger.info(f"Problem already exists: {problem_in.title} - skipping")
            continue

        db.add(Problem(**problem_in.to_row()))
        created += 1
        logger.info(f"Created problem: {problem_in.title}")
    return created


async def _create_daily_challenges(db: AsyncSession, today: Optional[date] = None) -> int:
    """Fill the current month's daily challenges from the problem catalog.

    Days that already have a challenge keep it.

    Returns:
        int: Number of challenges created
    """
    today = today or utcnow().date()
    result = await db.execute(select(Problem.id))
    problem_ids = list(result.scalars().all())
    if not problem_ids:
        logger.info("No problems found - skipping daily challenge creation")
        return 0

    created = await crud_daily_challenge.fill_month(
        db, year=today.year, month=today.month, problem_ids=problem_ids
    )
    logger.info(f"Created {created} daily challenges for {today.year}-{today.month:02d}")
    return created


async def init_db(db: AsyncSession) -> None:
    """Create tables and load seed data."""
    try:
        await _create_tables(db)
        await _create_problems(db)
        await db.flush()
        await _create_daily_challenges(db)
        await db.commit()
        logger.info("Database initialization completed successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        await db.rollback()
        raise


async def _run() -> None:
    async with AsyncSessionLocal() as db:
        await init_db(db)


def main() -> None:
    """Main function to run database initialization."""
    try:
        asyncio.run(_run())
        print("Database initialization completed successfully!")
    except Exception as e:
        print(f"Database initialization failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
