"""Goal and task persistence orchestration plus goal status derivation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from taskplanner.db.models.enums import GoalStatus, TaskStatus
from taskplanner.db.models.goal import Goal
from taskplanner.db.models.task import Task
from taskplanner.services.llm_client import PlanLLMClient
from taskplanner.services.plan_generator import generate_task_plan
from taskplanner.services.plan_types import PlanRequest, TaskPlan

logger = logging.getLogger(__name__)

RECENT_GOALS_LIMIT = 10

E = TypeVar("E", GoalStatus, TaskStatus)


class GoalServiceError(Exception):
    """Base class for errors surfaced to API callers."""


class GoalNotFoundError(GoalServiceError):
    def __init__(self, goal_id: UUID):
        super().__init__(f"Goal not found with id: {goal_id}")
        self.goal_id = goal_id


class TaskNotFoundError(GoalServiceError):
    def __init__(self, task_id: UUID):
        super().__init__(f"Task not found with id: {task_id}")
        self.task_id = task_id


class TaskGoalMismatchError(GoalServiceError):
    def __init__(self, task_id: UUID, goal_id: UUID):
        super().__init__(f"Task {task_id} does not belong to goal {goal_id}")


class InvalidStatusError(GoalServiceError):
    def __init__(self, value: str, allowed: Iterable[str]):
        super().__init__(f"Unknown status {value!r}; expected one of {', '.join(allowed)}")


class ConcurrentUpdateError(GoalServiceError):
    """Another writer changed the goal between our read and our write."""


@dataclass
class CreatedGoal:
    goal: Goal
    plan: TaskPlan


def derive_goal_status(current: GoalStatus, task_statuses: Iterable[TaskStatus]) -> GoalStatus:
    """Goal status as a function of its tasks.

    All tasks completed -> COMPLETED, some completed -> IN_PROGRESS. With no
    tasks, or none completed, the current status is kept (never reverts to
    PLANNING).
    """
    statuses = list(task_statuses)
    if not statuses:
        return current
    completed = sum(1 for status in statuses if status == TaskStatus.COMPLETED)
    if completed == len(statuses):
        return GoalStatus.COMPLETED
    if completed > 0:
        return GoalStatus.IN_PROGRESS
    return current


def parse_status(enum_cls: Type[E], value: str) -> E:
    """Map an API literal onto ``enum_cls`` or raise InvalidStatusError."""
    try:
        return enum_cls((value or "").strip().upper())
    except ValueError as exc:
        raise InvalidStatusError(value, [member.value for member in enum_cls]) from exc


def create_goal_with_plan(
    db: Session,
    request: PlanRequest,
    *,
    llm_client: Optional[PlanLLMClient] = None,
    request_id: Optional[str] = None,
) -> CreatedGoal:
    """Generate a plan and persist it as one goal with its tasks, in one commit."""
    logger.info("Creating goal: %s", request.description)
    plan = generate_task_plan(request, llm_client=llm_client, request_id=request_id)

    goal = Goal(
        description=request.description,
        target_date=request.target_date,
        status=GoalStatus.PLANNING,
        ai_analysis=plan.analysis,
    )
    for planned in plan.tasks:
        goal.add_task(
            Task(
                title=planned.title,
                description=planned.description,
                detailed_description=planned.detailed_description,
                steps=list(planned.steps),
                estimated_duration_hours=planned.estimated_duration_hours,
                priority=planned.priority,
                status=TaskStatus.PENDING,
                order_index=planned.order_index,
                dependencies=list(planned.dependencies),
                start_date=planned.start_date,
                end_date=planned.end_date,
            )
        )

    db.add(goal)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(goal)
    logger.info("Stored goal %s with %d tasks (fallback=%s)", goal.id, len(goal.tasks), plan.fallback_used)
    return CreatedGoal(goal=goal, plan=plan)


def get_goal(db: Session, goal_id: UUID) -> Goal:
    goal = db.get(Goal, goal_id)
    if goal is None:
        raise GoalNotFoundError(goal_id)
    return goal


def list_goals(db: Session) -> List[Goal]:
    stmt = select(Goal).options(selectinload(Goal.tasks)).order_by(Goal.created_at.desc())
    return list(db.scalars(stmt))


def list_recent_goals(db: Session, limit: int = RECENT_GOALS_LIMIT) -> List[Goal]:
    stmt = (
        select(Goal)
        .options(selectinload(Goal.tasks))
        .order_by(Goal.created_at.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def update_task_status(db: Session, goal_id: UUID, task_id: UUID, status: str) -> Task:
    """Set a task's status and re-derive its goal's status in the same transaction.

    The goal row is locked for the duration (FOR UPDATE where the backend
    supports it) and every write bumps the goal's version, so two concurrent
    completions under one goal serialize instead of losing an update.
    """
    new_status = parse_status(TaskStatus, status)
    task = db.get(Task, task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    if task.goal_id != goal_id:
        raise TaskGoalMismatchError(task_id, goal_id)

    goal = db.scalars(
        select(Goal).where(Goal.id == goal_id).with_for_update().execution_options(populate_existing=True)
    ).one_or_none()
    if goal is None:
        raise GoalNotFoundError(goal_id)

    previous_task_status = task.status
    task.status = new_status
    derived = derive_goal_status(goal.status, [item.status for item in goal.tasks])
    if derived != goal.status:
        logger.info("Goal %s status %s -> %s", goal.id, goal.status.value, derived.value)
    goal.status = derived
    goal.updated_at = datetime.now(timezone.utc)

    _commit_goal_write(db, goal_id)
    logger.info(
        "Task %s status %s -> %s",
        task.id,
        previous_task_status.value if previous_task_status else None,
        new_status.value,
    )
    db.refresh(task)
    return task


def override_goal_status(db: Session, goal_id: UUID, status: str) -> Goal:
    """Set the goal status directly, bypassing derivation.

    Not sticky: the next task status update re-derives the goal status.
    """
    new_status = parse_status(GoalStatus, status)
    goal = get_goal(db, goal_id)
    logger.info("Goal %s status overridden %s -> %s", goal.id, goal.status.value, new_status.value)
    goal.status = new_status
    _commit_goal_write(db, goal_id)
    db.refresh(goal)
    return goal


def delete_goal(db: Session, goal_id: UUID) -> None:
    goal = get_goal(db, goal_id)
    db.delete(goal)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted goal %s", goal_id)


def _commit_goal_write(db: Session, goal_id: UUID) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise ConcurrentUpdateError(f"Goal {goal_id} was modified concurrently; retry the request") from exc
    except Exception:
        db.rollback()
        raise
