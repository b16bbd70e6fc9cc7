from sqlalchemy import Boolean, CheckConstraint, Column, JSON, String

from .base import Base


class Problem(Base):
    """Problem in the practice catalog.

    Deleting a problem leaves its submissions in place: ``submissions.problem_id``
    carries no foreign key.
    """
    __tablename__ = "problems"
    __table_args__ = (
        CheckConstraint("difficulty IN ('easy', 'medium', 'hard')", name="ck_problems_difficulty"),
        CheckConstraint("length(title) > 0", name="ck_problems_title"),
    )

    title = Column(String, nullable=False)
    description = Column(JSON, nullable=False)  # block document, always a list
    editorial = Column(JSON, nullable=True)
    difficulty = Column(String, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    companies = Column(JSON, nullable=False, default=list)

    # language -> code
    starter_code = Column(JSON, nullable=False, default=dict)
    top_code = Column(JSON, nullable=False, default=dict)
    bottom_code = Column(JSON, nullable=False, default=dict)
    solution = Column(JSON, nullable=False, default=dict)

    test_cases = Column(JSON, nullable=False, default=list)  # ordered [{"input": ..., "output": ...}]
    hints = Column(JSON, nullable=False, default=list)
    is_premium = Column(Boolean, nullable=False, default=False)
