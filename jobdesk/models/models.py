"""SQLAlchemy ORM Models for JobDesk.

Personnel, tasks with their assignment/watcher relations, teams, wiki
articles, the notification dedup log and the single-row system settings
table.
"""

from datetime import date, datetime
from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDMixin, utcnow


# =============================================================================
# ENUMS
# =============================================================================


class ProfileRole(str, PyEnum):
    ADMIN = "admin"
    CHEF = "chef"
    STAFF = "staff"


class TaskStatus(str, PyEnum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    REVIEW_PENDING = "Review Pending"
    COMPLETED = "Completed"


class TaskPriority(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class NotificationKind(str, PyEnum):
    """Dedup keys for WhatsApp notifications."""
    ONBOARDING = "onboarding"
    TASK_ASSIGNEE = "task_assignee"
    TASK_WATCHER = "task_watcher"


class WikiCategory(str, PyEnum):
    NETWORK = "Network"
    SERVER = "Server"
    SOFTWARE = "Software"
    ELECTRICAL = "Electrical"


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


# =============================================================================
# PERSONNEL
# =============================================================================


class Profile(Base, UUIDMixin, TimestampMixin):
    """A person in the directory. Doubles as the login identity."""

    __tablename__ = "profiles"

    full_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    role: Mapped[ProfileRole] = mapped_column(
        Enum(ProfileRole, name="profile_role", values_callable=_enum_values),
        default=ProfileRole.STAFF,
        nullable=False,
    )
    department: Mapped[str | None] = mapped_column(String(255))

    # Credentials
    password_hash: Mapped[str | None] = mapped_column(String(255))
    temporary_password: Mapped[str | None] = mapped_column(
        String(64),
        comment="Shown once in the onboarding message, cleared after first password change",
    )
    temp_password_expires_at: Mapped[datetime | None] = mapped_column()
    is_password_forced_change: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    __table_args__ = (
        Index("idx_profiles_role", "role"),
    )


class Team(Base, UUIDMixin, TimestampMixin):
    """Grouping of profiles used to bulk-select assignees."""

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(255))
    lead_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL")
    )


class TeamMember(Base):
    """Membership linking profiles to teams."""

    __tablename__ = "team_members"

    team_id: Mapped[UUID] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )
    profile_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (
        Index("idx_team_members_profile", "profile_id"),
    )


# =============================================================================
# TASKS
# =============================================================================


class Task(Base, UUIDMixin, TimestampMixin):
    """A unit of work moving through the status workflow."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    assigner_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL")
    )
    assignee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        comment="Legacy single assignee, mirrors the first task_assignments row",
    )
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", values_callable=_enum_values),
        default=TaskStatus.PENDING,
        nullable=False,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority", values_callable=_enum_values),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    due_date: Mapped[date | None] = mapped_column(Date)
    revision_notes: Mapped[str | None] = mapped_column(
        Text,
        comment="Append-only log of '[DD/MM/YYYY Admin]: ...' entries",
    )
    wiki_article_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("wiki_articles.id", ondelete="SET NULL")
    )

    __table_args__ = (
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_assignee", "assignee_id"),
    )


class TaskAssignment(Base):
    """Authoritative assignee set for a task."""

    __tablename__ = "task_assignments"

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True
    )
    profile_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("idx_task_assignments_profile", "profile_id"),
    )


class TaskWatcher(Base):
    """Profiles informed about a task without owning it."""

    __tablename__ = "task_watchers"

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True
    )
    profile_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("idx_task_watchers_profile", "profile_id"),
    )


# =============================================================================
# WIKI
# =============================================================================


class WikiArticle(Base, UUIDMixin, TimestampMixin):
    """Markdown knowledge-base article, often written up from a finished task."""

    __tablename__ = "wiki_articles"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category: Mapped[WikiCategory] = mapped_column(
        Enum(WikiCategory, name="wiki_category", values_callable=_enum_values),
        default=WikiCategory.SOFTWARE,
        nullable=False,
    )
    author_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL")
    )
    media_urls: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        default=list,
        nullable=False,
    )

    __table_args__ = (
        Index("idx_wiki_articles_category", "category"),
    )


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class NotificationLog(Base, UUIDMixin):
    """Dedup marker: one row per successfully delivered (kind, profile, task)."""

    __tablename__ = "notification_log"

    kind: Mapped[NotificationKind] = mapped_column(
        Enum(NotificationKind, name="notification_kind", values_callable=_enum_values),
        nullable=False,
    )
    profile_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    task_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "kind", "profile_id", "task_id",
            name="uq_notification_log_kind_profile_task",
        ),
        # NULLs are distinct in a plain unique constraint
        Index(
            "uq_notification_log_kind_profile_no_task",
            "kind",
            "profile_id",
            unique=True,
            postgresql_where=text("task_id IS NULL"),
            sqlite_where=text("task_id IS NULL"),
        ),
    )


class SystemSettings(Base):
    """Single-row table holding gateway credentials and message templates."""

    __tablename__ = "system_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    whatsapp_instance_id: Mapped[str | None] = mapped_column(String(255))
    whatsapp_token: Mapped[str | None] = mapped_column(
        Text, comment="Fernet-encrypted when ENCRYPTION_KEY is set"
    )
    template_onboarding: Mapped[str | None] = mapped_column(Text)
    template_task_assigned: Mapped[str | None] = mapped_column(Text)
    template_watcher: Mapped[str | None] = mapped_column(Text)
    template_task_updated: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime | None] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow
    )
