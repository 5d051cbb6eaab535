"""
Jobs Module

Job requisitions with approval metadata and lifecycle stamps. Status values
and their legal transitions live in ``core.workflow.requisition``.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Enum as SQLEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.utils.datetime import now
from core.workflow.requisition import JobStatus, JobVisibility
from database.engine import Base
from database.types import IdType, UTCDateTime


# ==================== Job Model ===================== #
class Job(Base):
    """
    Job requisition.

    ``version`` is bumped on every update; a concurrent writer holding a
    stale copy fails its flush with ``StaleDataError``.
    """

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(
        IdType, primary_key=True, nullable=False, autoincrement=True
    )

    # Basic info
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(255))
    department: Mapped[str | None] = mapped_column(String(255))
    hiring_manager_id: Mapped[int | None] = mapped_column(BigInteger, index=True)
    positions: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Classification
    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=50),
        nullable=False,
        default=JobStatus.DRAFT,
        index=True,
    )
    visibility: Mapped[JobVisibility] = mapped_column(
        SQLEnum(JobVisibility, native_enum=False, length=50),
        nullable=False,
        default=JobVisibility.PUBLIC,
    )

    # Approval
    submitted_by: Mapped[int | None] = mapped_column(BigInteger)
    submitted_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    approved_by: Mapped[int | None] = mapped_column(BigInteger)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    rejected_by: Mapped[int | None] = mapped_column(BigInteger)
    rejected_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    # Lifecycle stamps
    opened_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    paused_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    closed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    filled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # Metadata
    created_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now, onupdate=now
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("idx_jobs_status_visibility", "status", "visibility"),)
