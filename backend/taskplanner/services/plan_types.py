"""Typed plan structures produced by the parser and the fallback generator."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskplanner.db.models.enums import TaskPriority, TaskStatus


class PlanRequest(BaseModel):
    """What the planner needs to know about a goal."""

    description: str
    target_date: Optional[datetime] = None
    constraints: List[str] = Field(default_factory=list)


class PlannedTask(BaseModel):
    """A single scheduled task inside a generated plan."""

    title: str
    description: str
    detailed_description: str
    steps: List[str] = Field(default_factory=list)
    estimated_duration_hours: int = Field(..., ge=0)
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    order_index: int = Field(..., ge=1)
    dependencies: List[int] = Field(default_factory=list)
    start_date: datetime
    end_date: datetime


class TaskPlan(BaseModel):
    """A fully defaulted plan; never partially constructed."""

    analysis: str
    tasks: List[PlannedTask] = Field(default_factory=list)
    total_tasks: int
    estimated_total_hours: int
    suggested_start_date: datetime
    suggested_end_date: datetime
    recommendations: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)
    fallback_used: bool = False
