"""Goal planning and progress API routes."""
from __future__ import annotations

from time import perf_counter
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from taskplanner.api.schemas.goal import GoalRequest, GoalResponse, TaskPlanResponse
from taskplanner.api.schemas.task import TaskResponse, UpdateTaskStatusRequest
from taskplanner.db.deps import get_db
from taskplanner.db.models.goal import Goal
from taskplanner.observability.metrics import log_metric
from taskplanner.observability.tracing import trace
from taskplanner.services import goal_lifecycle
from taskplanner.services.goal_lifecycle import (
    ConcurrentUpdateError,
    GoalNotFoundError,
    GoalServiceError,
    InvalidStatusError,
    TaskGoalMismatchError,
    TaskNotFoundError,
)
from taskplanner.services.plan_types import PlanRequest

router = APIRouter(prefix="/api/goals", tags=["goals"])


@router.post("", response_model=TaskPlanResponse, status_code=status.HTTP_201_CREATED)
def create_goal(
    payload: GoalRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskPlanResponse:
    """Break a goal down into a scheduled task plan and store it."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/api/goals",
        "description_length": len(payload.description),
        "has_target_date": payload.target_date is not None,
        "request_id": request_id,
    }

    start_time = perf_counter()
    try:
        with trace("goal.create", metadata=metadata, request_id=request_id):
            created = goal_lifecycle.create_goal_with_plan(
                db,
                _plan_request(payload),
                request_id=request_id,
            )
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create goal",
        ) from exc

    plan = created.plan
    log_metric(
        "goal.create.latency_ms",
        (perf_counter() - start_time) * 1000,
        metadata={"fallback_used": plan.fallback_used, "total_tasks": plan.total_tasks},
    )

    return TaskPlanResponse(
        goal_id=created.goal.id,
        analysis=plan.analysis,
        total_tasks=plan.total_tasks,
        estimated_total_hours=plan.estimated_total_hours,
        suggested_start_date=plan.suggested_start_date,
        suggested_end_date=plan.suggested_end_date,
        tasks=[TaskResponse.model_validate(task) for task in created.goal.tasks],
        recommendations=plan.recommendations,
        risks=plan.risks,
        fallback_used=plan.fallback_used,
        request_id=request_id or "",
    )


@router.get("", response_model=List[GoalResponse])
def list_goals(db: Session = Depends(get_db)) -> List[GoalResponse]:
    """List every goal, newest first."""
    return [_serialize_goal(goal) for goal in goal_lifecycle.list_goals(db)]


@router.get("/recent", response_model=List[GoalResponse])
def list_recent_goals(db: Session = Depends(get_db)) -> List[GoalResponse]:
    """List the ten most recently created goals."""
    return [_serialize_goal(goal) for goal in goal_lifecycle.list_recent_goals(db)]


@router.get("/{goal_id}", response_model=GoalResponse)
def get_goal(goal_id: UUID, db: Session = Depends(get_db)) -> GoalResponse:
    """Fetch one goal with its tasks."""
    try:
        goal = goal_lifecycle.get_goal(db, goal_id)
    except GoalServiceError as exc:
        raise _http_error(exc) from exc
    return _serialize_goal(goal)


@router.put("/{goal_id}/tasks/status", response_model=TaskResponse)
def update_task_status(
    goal_id: UUID,
    payload: UpdateTaskStatusRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskResponse:
    """Change a task's status; the goal status is re-derived from its tasks."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": f"/api/goals/{goal_id}/tasks/status",
        "goal_id": str(goal_id),
        "task_id": str(payload.task_id),
        "status": payload.status,
    }
    try:
        with trace("task.status", metadata=metadata, request_id=request_id):
            task = goal_lifecycle.update_task_status(db, goal_id, payload.task_id, payload.status)
    except GoalServiceError as exc:
        raise _http_error(exc) from exc

    log_metric("task.status.updated", 1, metadata={"status": task.status.value})
    return TaskResponse.model_validate(task)


@router.put("/{goal_id}/status", response_model=GoalResponse)
def override_goal_status(
    goal_id: UUID,
    status_value: str = Query(..., alias="status", description="PLANNING, IN_PROGRESS or COMPLETED"),
    db: Session = Depends(get_db),
) -> GoalResponse:
    """Set the goal status directly. A later task update may re-derive it."""
    try:
        goal = goal_lifecycle.override_goal_status(db, goal_id, status_value)
    except GoalServiceError as exc:
        raise _http_error(exc) from exc
    return _serialize_goal(goal)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_goal(goal_id: UUID, db: Session = Depends(get_db)) -> Response:
    """Delete a goal and all of its tasks."""
    try:
        goal_lifecycle.delete_goal(db, goal_id)
    except GoalServiceError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _plan_request(payload: GoalRequest) -> PlanRequest:
    constraints = [item for item in (payload.constraints or []) if item and item.strip()]
    if payload.max_tasks_per_day:
        constraints.append(f"Schedule at most {payload.max_tasks_per_day} tasks per day")
    return PlanRequest(
        description=payload.description,
        target_date=payload.target_date,
        constraints=constraints,
    )


def _serialize_goal(goal: Goal) -> GoalResponse:
    return GoalResponse(
        id=goal.id,
        description=goal.description,
        target_date=goal.target_date,
        status=goal.status,
        tasks=[TaskResponse.model_validate(task) for task in goal.tasks],
        ai_analysis=goal.ai_analysis,
        created_at=goal.created_at,
        updated_at=goal.updated_at,
    )


def _http_error(exc: GoalServiceError) -> HTTPException:
    if isinstance(exc, (GoalNotFoundError, TaskNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (TaskGoalMismatchError, InvalidStatusError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ConcurrentUpdateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
