from sqlalchemy import Column, Date, String, UUID as SQLUUID

from .base import Base


class DailyChallenge(Base):
    """Problem picked for one calendar day.

    Like submissions, ``problem_id`` carries no foreign key; a challenge whose
    problem was deleted is treated as missing.
    """
    __tablename__ = "daily_challenges"

    problem_id = Column(SQLUUID, nullable=False)
    challenge_date = Column(Date, nullable=False, unique=True, index=True)
    month = Column(String, nullable=False, index=True)  # YYYY-MM
