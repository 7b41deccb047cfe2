"""Schemas for task payloads."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from taskplanner.api.schemas.base import CamelModel
from taskplanner.db.models.enums import TaskPriority, TaskStatus


class TaskResponse(CamelModel):
    id: UUID
    goal_id: UUID
    title: str
    description: Optional[str]
    detailed_description: Optional[str]
    steps: List[str] = Field(default_factory=list)
    estimated_duration_hours: int
    priority: TaskPriority
    status: TaskStatus
    order_index: int
    dependencies: List[int] = Field(default_factory=list)
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class UpdateTaskStatusRequest(CamelModel):
    task_id: UUID
    status: str = Field(..., description="PENDING, IN_PROGRESS, COMPLETED or BLOCKED")

    @field_validator("status")
    @classmethod
    def status_not_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Status is required.")
        return cleaned
