"""Schemas for goal creation and retrieval."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from taskplanner.api.schemas.base import CamelModel
from taskplanner.api.schemas.task import TaskResponse
from taskplanner.db.models.enums import GoalStatus


class GoalRequest(CamelModel):
    description: str = Field(..., max_length=500)
    target_date: Optional[datetime] = None
    constraints: Optional[List[str]] = None
    max_tasks_per_day: Optional[int] = Field(default=None, ge=1, le=24)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Goal description is required")
        return cleaned


class GoalResponse(CamelModel):
    id: UUID
    description: str
    target_date: Optional[datetime]
    status: GoalStatus
    tasks: List[TaskResponse] = Field(default_factory=list)
    ai_analysis: Optional[str]
    created_at: datetime
    updated_at: datetime


class TaskPlanResponse(CamelModel):
    goal_id: UUID
    analysis: str
    total_tasks: int
    estimated_total_hours: int
    suggested_start_date: datetime
    suggested_end_date: datetime
    tasks: List[TaskResponse] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)
    fallback_used: bool = False
    request_id: str
