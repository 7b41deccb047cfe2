"""Task ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from taskplanner.db.base import Base
from taskplanner.db.models.enums import TaskPriority, TaskStatus
from taskplanner.db.types import JSONBCompat


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_goal_id", "goal_id"),
        Index("ix_tasks_status", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    goal_id = Column(UUID(as_uuid=True), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    detailed_description = Column(Text, nullable=True)
    steps = Column(JSONBCompat, nullable=False, default=list)
    estimated_duration_hours = Column(Integer, nullable=False, default=0)
    priority = Column(
        Enum(TaskPriority, name="task_priority", native_enum=False, length=20),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status = Column(
        Enum(TaskStatus, name="task_status", native_enum=False, length=20),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    order_index = Column(Integer, nullable=False)
    # Order indices of prerequisite tasks in the same goal; not foreign keys.
    dependencies = Column(JSONBCompat, nullable=False, default=list)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    goal = relationship("Goal", back_populates="tasks")
