"""Goal ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from taskplanner.db.base import Base
from taskplanner.db.models.enums import GoalStatus


class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (Index("ix_goals_created_at", "created_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    description = Column(String(length=500), nullable=False)
    target_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(
        Enum(GoalStatus, name="goal_status", native_enum=False, length=50),
        nullable=False,
        default=GoalStatus.PLANNING,
    )
    ai_analysis = Column(Text, nullable=True)
    # Bumped on every flush; a stale UPDATE raises StaleDataError.
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    tasks = relationship(
        "Task",
        back_populates="goal",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Task.order_index",
    )

    __mapper_args__ = {"version_id_col": version}

    def add_task(self, task) -> None:
        self.tasks.append(task)
