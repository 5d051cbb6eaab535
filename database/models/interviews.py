"""
Interview Models

Interviews, their panels, per-interviewer feedback, the reschedule log and the
decision audit trail.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.utils.datetime import now
from core.workflow.feedback import Decision, Recommendation
from core.workflow.scheduling import (
    CandidateResponse,
    InterviewStatus,
    InterviewType,
    PanelRole,
)
from database.engine import Base
from database.types import IdType, UTCDateTime


# ==================== Interview Model ===================== #
class Interview(Base):
    """
    A scheduled interview round for one application.

    ``ends_at`` is stored alongside ``scheduled_at`` so the calendar query is a
    plain range comparison on every backend.
    """

    __tablename__ = "interviews"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("applications.id"), nullable=False, index=True
    )
    job_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("jobs.id"), nullable=False, index=True
    )
    candidate_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    # Interview details
    round: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    interview_type: Mapped[InterviewType] = mapped_column(
        SQLEnum(InterviewType, native_enum=False, length=50),
        nullable=False,
        default=InterviewType.TECHNICAL,
    )
    title: Mapped[str | None] = mapped_column(String(255))
    location: Mapped[str | None] = mapped_column(String(500))
    status: Mapped[InterviewStatus] = mapped_column(
        SQLEnum(InterviewStatus, native_enum=False, length=50),
        nullable=False,
        default=InterviewStatus.SCHEDULED,
        index=True,
    )

    # Scheduling
    scheduled_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)

    # Candidate response
    candidate_response: Mapped[CandidateResponse] = mapped_column(
        SQLEnum(CandidateResponse, native_enum=False, length=50),
        nullable=False,
        default=CandidateResponse.PENDING,
    )
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    response_note: Mapped[str | None] = mapped_column(Text)

    # Result
    decision: Mapped[Decision | None] = mapped_column(
        SQLEnum(Decision, native_enum=False, length=50)
    )
    decided_by: Mapped[int | None] = mapped_column(BigInteger)
    decided_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    decision_notes: Mapped[str | None] = mapped_column(Text)

    # Cancellation
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    cancelled_by: Mapped[int | None] = mapped_column(BigInteger)
    cancellation_reason: Mapped[str | None] = mapped_column(Text)

    # Metadata
    created_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now, onupdate=now
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    participants: Mapped[list["InterviewParticipant"]] = relationship(
        "InterviewParticipant",
        back_populates="interview",
        lazy="selectin",
        order_by="InterviewParticipant.id",
    )
    feedback: Mapped[list["InterviewFeedback"]] = relationship(
        "InterviewFeedback",
        back_populates="interview",
        lazy="selectin",
        order_by="InterviewFeedback.id",
    )
    reschedule_history: Mapped[list["InterviewReschedule"]] = relationship(
        "InterviewReschedule",
        back_populates="interview",
        lazy="selectin",
        order_by="InterviewReschedule.id",
    )
    decision_audit: Mapped[list["InterviewDecisionAudit"]] = relationship(
        "InterviewDecisionAudit",
        back_populates="interview",
        lazy="selectin",
        order_by="InterviewDecisionAudit.id",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_interviews_window", "scheduled_at", "ends_at"),
        Index("idx_interviews_application_round", "application_id", "round"),
    )

    @property
    def interviewer_ids(self) -> list[int]:
        return [p.interviewer_id for p in self.participants]


# ==================== Panel ===================== #
class InterviewParticipant(Base):
    """An interviewer assigned to an interview."""

    __tablename__ = "interview_participants"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    interview_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False
    )
    interviewer_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    role_in_panel: Mapped[PanelRole] = mapped_column(
        SQLEnum(PanelRole, native_enum=False, length=50),
        nullable=False,
        default=PanelRole.INTERVIEWER,
    )
    confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    interview: Mapped["Interview"] = relationship(
        "Interview", back_populates="participants"
    )

    __table_args__ = (
        UniqueConstraint(
            "interview_id", "interviewer_id", name="uq_interview_participant"
        ),
    )


# ==================== Feedback ===================== #
class InterviewFeedback(Base):
    """Feedback from one interviewer. Resubmission updates the row in place."""

    __tablename__ = "interview_feedback"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    interview_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False
    )
    interviewer_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    submitted_by: Mapped[int] = mapped_column(BigInteger, nullable=False)

    ratings: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False, default=dict)
    recommendation: Mapped[Recommendation] = mapped_column(
        SQLEnum(Recommendation, native_enum=False, length=50), nullable=False
    )
    strengths: Mapped[str | None] = mapped_column(Text)
    areas_of_improvement: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    private_notes: Mapped[str | None] = mapped_column(Text)
    submitted_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    interview: Mapped["Interview"] = relationship("Interview", back_populates="feedback")

    __table_args__ = (
        UniqueConstraint(
            "interview_id", "interviewer_id", name="uq_interview_feedback_interviewer"
        ),
    )


# ==================== Reschedule Log ===================== #
class InterviewReschedule(Base):
    """Append-only record of a time change."""

    __tablename__ = "interview_reschedules"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    interview_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False, index=True
    )
    previous_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    new_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    requested_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    requested_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )

    interview: Mapped["Interview"] = relationship(
        "Interview", back_populates="reschedule_history"
    )


# ==================== Decision Audit ===================== #
class InterviewDecisionAudit(Base):
    """Append-only record of every decision recorded on an interview."""

    __tablename__ = "interview_decision_audit"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )
    interview_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False, index=True
    )
    previous_decision: Mapped[Decision | None] = mapped_column(
        SQLEnum(Decision, native_enum=False, length=50)
    )
    new_decision: Mapped[Decision] = mapped_column(
        SQLEnum(Decision, native_enum=False, length=50), nullable=False
    )
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    decided_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    interview: Mapped["Interview"] = relationship(
        "Interview", back_populates="decision_audit"
    )
