from sqlalchemy import Column, ForeignKey, Integer, String, Text, UUID as SQLUUID

from .base import Base


class Submission(Base):
    """Result of evaluating one code submission.

    ``status`` is whatever the external evaluator reported; it is never
    recomputed locally.
    """
    __tablename__ = "submissions"

    problem_id = Column(SQLUUID, nullable=False, index=True)
    user_id = Column(SQLUUID, ForeignKey("users.id"), nullable=False, index=True)
    code = Column(Text, nullable=False)
    language = Column(String, nullable=False)
    status = Column(String, nullable=False)
    runtime = Column(String, nullable=True)
    memory = Column(String, nullable=True)
    test_cases_passed = Column(Integer, nullable=False, default=0)
    total_test_cases = Column(Integer, nullable=False, default=0)
