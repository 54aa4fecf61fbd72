"""SQLAlchemy table definitions.

These back the frozen dataclass models in lms/models/.  The Pg*Repo
classes convert between rows and models.  Uniqueness that the services
rely on is declared here so the database rejects duplicate progress
records and certificates even if two requests race.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    Float,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from lms.db.engine import Base

# --- Catalog ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(
        String(16), nullable=False
    )  # video|youtube|interactive
    content: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="draft", index=True
    )  # draft|active|inactive|archived
    mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deadline: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    quiz: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    audience_everyone: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    audience_departments: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    audience_roles: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    materials: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


# --- Progress ---


class CourseProgressRow(Base):
    __tablename__ = "course_progress"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="not_started"
    )  # not_started|in_progress|completed|failed
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    video_watch_seconds: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    video_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    best_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_passed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    started_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    completed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_accessed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class QuizAttemptRow(Base):
    __tablename__ = "quiz_attempts"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    course_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    attempt_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    answers: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    time_spent_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id", "course_id"],
            ["course_progress.user_id", "course_progress.course_id"],
            ondelete="CASCADE",
        ),
    )


# --- Certificates ---


class CertificateRow(Base):
    """Snapshot of a completion.  No foreign key to courses: a certificate
    outlives the course it was issued for."""

    __tablename__ = "certificates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    certificate_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    course_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_title: Mapped[str] = mapped_column(String(200), nullable=False)
    completion_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    content_type: Mapped[str] = mapped_column(String(16), nullable=False)
    quiz_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    issued_by: Mapped[str] = mapped_column(String(255), nullable=False)
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    valid_until: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_downloaded_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    invalidation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    invalidated_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_certificates_user_course"),
    )


# --- Policies ---


class PolicyRow(Base):
    __tablename__ = "policies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[str] = mapped_column(String(32), nullable=False, default="1.0")
    effective_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    expiry_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="active"
    )  # active|archived
    mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class PolicyAcknowledgmentRow(Base):
    __tablename__ = "policy_acknowledgments"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    policy_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("policies.id"), primary_key=True
    )
    policy_version: Mapped[str] = mapped_column(String(32), nullable=False)
    acknowledged_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


# --- Announcements ---


class AnnouncementRow(Base):
    __tablename__ = "announcements"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column(
        String(16), nullable=False, default="announcement"
    )  # announcement|reminder|news
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    priority: Mapped[str] = mapped_column(String(8), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="published"
    )  # published|archived
    published_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    audience_everyone: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    audience_departments: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    audience_roles: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attachments: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class AnnouncementReadRow(Base):
    __tablename__ = "announcement_reads"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    announcement_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("announcements.id", ondelete="CASCADE"),
        primary_key=True,
    )
    read_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


# --- Incident reports ---


class IncidentReportRow(Base):
    __tablename__ = "incident_reports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="reported", index=True
    )  # reported|investigating|resolved|closed
    reported_by: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    reported_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
    root_cause: Mapped[str | None] = mapped_column(Text, nullable=True)
    affected_systems: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    preventive_measures: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    resolved_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
