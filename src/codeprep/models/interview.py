from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, JSON, String, Text, UUID as SQLUUID

from .base import Base


class Interview(Base):
    """Mock interview owned by a single user."""
    __tablename__ = "interviews"
    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'pending', 'in_progress', 'completed')",
            name="ck_interviews_status",
        ),
    )

    user_id = Column(SQLUUID, ForeignKey("users.id"), nullable=False, index=True)
    position = Column(String, nullable=False)
    company_name = Column(String, nullable=True)
    job_description = Column(Text, nullable=True)
    interview_type = Column(String, nullable=False)
    difficulty = Column(String, nullable=False, default="medium")
    duration = Column(String, nullable=False)
    questions = Column(JSON, nullable=False, default=list)  # generated once, at creation
    interviewer_name = Column(String, nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default="scheduled")
    feedback = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
