"""
SQLAlchemy database models.
Defines the print_jobs table.
"""

from datetime import datetime
from uuid import UUID as PyUUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from printqueue.constants import MAX_DEDUP_KEY_LENGTH, MAX_TARGET_LENGTH, JobStatus
from printqueue.types.job import JobRecord


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Job(Base):
    """
    Print job row.

    This is the authoritative source of truth for job state.

    Key constraints:
    - dedup_key is unique across all rows regardless of status (NULLs never collide)
    - (status, created_at) is indexed for oldest-pending lookup
    - rows are never deleted by the queue; terminal jobs stay for audit
    """

    __tablename__ = "print_jobs"

    id: Mapped[PyUUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        nullable=False,
    )

    dedup_key: Mapped[str | None] = mapped_column(
        String(MAX_DEDUP_KEY_LENGTH),
        nullable=True,
    )

    # Base64 PDF content
    payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    target: Mapped[str | None] = mapped_column(
        String(MAX_TARGET_LENGTH),
        nullable=True,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(
            JobStatus,
            name="print_job_status",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=JobStatus.PENDING,
    )

    tries: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("dedup_key", name="uq_print_jobs_dedup_key"),
        Index("ix_print_jobs_status_created", "status", "created_at"),
        CheckConstraint("tries >= 0", name="ck_print_jobs_tries_non_negative"),
    )

    def to_record(self) -> JobRecord:
        """Detach the row into a backend-neutral JobRecord."""
        return JobRecord(
            id=self.id,
            dedup_key=self.dedup_key,
            payload=self.payload,
            target=self.target,
            status=JobStatus(self.status),
            tries=self.tries,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"Job(id={self.id}, status={self.status}, tries={self.tries})"
