"""
Application Models

Candidate applications and their append-only status history.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.utils.datetime import now
from core.workflow.application_status import ApplicationStatus, ScoringStatus
from database.engine import Base
from database.types import IdType, UTCDateTime


# ==================== Application Model ===================== #
class Application(Base):
    """One candidate's application to one job."""

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    candidate_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    job_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("jobs.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=50),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )

    # Submission
    cover_letter: Mapped[str | None] = mapped_column(Text)
    resume_url: Mapped[str | None] = mapped_column(String(1000))

    # Withdrawal / rejection
    withdrawn_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    withdrawn_reason: Mapped[str | None] = mapped_column(Text)
    rejected_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    rejected_by: Mapped[int | None] = mapped_column(BigInteger)

    # Scoring
    match_score: Mapped[float | None] = mapped_column(Float)
    match_summary: Mapped[str | None] = mapped_column(Text)
    scoring_status: Mapped[ScoringStatus] = mapped_column(
        SQLEnum(ScoringStatus, native_enum=False, length=50),
        nullable=False,
        default=ScoringStatus.NOT_REQUESTED,
    )

    # Timestamps
    applied_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now, onupdate=now
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    status_history: Mapped[list["ApplicationStatusHistory"]] = relationship(
        "ApplicationStatusHistory",
        back_populates="application",
        lazy="selectin",
        order_by="ApplicationStatusHistory.id",
        cascade="save-update, merge",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_application_candidate_job"),
        Index("idx_applications_job_status", "job_id", "status"),
    )

    @property
    def last_history_at(self) -> datetime | None:
        if not self.status_history:
            return None
        return self.status_history[-1].changed_at


# ==================== Status History ===================== #
class ApplicationStatusHistory(Base):
    """Append-only log of application status changes. Rows are never updated."""

    __tablename__ = "application_status_history"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("applications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=50), nullable=False
    )
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    application: Mapped["Application"] = relationship(
        "Application", back_populates="status_history"
    )
