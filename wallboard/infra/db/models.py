from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, String, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class AgentRow(Base, TimestampMixin):
    __tablename__ = "agents"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    agent_code: Mapped[str] = mapped_column(String(40), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    department: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Statuses are configuration data, so they are stored as plain strings.
    status: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    connection_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)
    login_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_status_change_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_status_change_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
