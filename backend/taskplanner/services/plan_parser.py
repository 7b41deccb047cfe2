"""Decode raw model output into a fully defaulted TaskPlan.

Models drift from the requested schema in small ways: fenced output, missing
fields, numbers as strings, unknown enum literals. Each field has one default
and the decoding happens in a single pass, so callers either get a complete
plan or a PlanParseError, never something in between.
"""
from __future__ import annotations

import json
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from taskplanner.db.models.enums import TaskPriority, TaskStatus
from taskplanner.services.plan_types import PlannedTask, TaskPlan
from taskplanner.services.scheduling import ScheduleCursor, as_utc

logger = logging.getLogger(__name__)

DEFAULT_DURATION_HOURS = 4
DEFAULT_TITLE = "Untitled Task"
DEFAULT_DESCRIPTION = "No description"
DEFAULT_DETAILED_DESCRIPTION = "No detailed description available"
DEFAULT_ANALYSIS = "No analysis provided"
# order_index is an INTEGER column; dependencies refer to order indexes.
MAX_ORDER_INDEX = 2**31 - 1

_OPENING_FENCE = re.compile(r"^```(?:json)?", re.IGNORECASE)


class PlanParseError(ValueError):
    """Raised when model output cannot be turned into a plan."""


def strip_code_fences(content: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker."""
    cleaned = content.strip()
    match = _OPENING_FENCE.match(cleaned)
    if match:
        cleaned = cleaned[match.end():].strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].strip()
    return cleaned


def parse_plan_response(content: Optional[str], *, now: Optional[datetime] = None) -> TaskPlan:
    """Decode model text into a TaskPlan or raise PlanParseError."""
    if content is None or not content.strip():
        raise PlanParseError("Empty response from model")

    cleaned = strip_code_fences(content)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise PlanParseError(f"Model response is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise PlanParseError(f"Expected a JSON object, got {type(payload).__name__}")

    try:
        return _decode_plan(payload, now or datetime.now(timezone.utc))
    except PlanParseError:
        raise
    except Exception as exc:
        raise PlanParseError(f"Could not decode plan: {exc}") from exc


def _decode_plan(payload: dict, now: datetime) -> TaskPlan:
    start_date = _parse_datetime(payload.get("suggestedStartDate")) or as_utc(now)
    end_date = _parse_datetime(payload.get("suggestedEndDate"))

    raw_tasks = payload.get("tasks")
    if not isinstance(raw_tasks, list):
        logger.warning("Plan has no task array (got %s)", type(raw_tasks).__name__)
        raw_tasks = []

    cursor = ScheduleCursor(start_date)
    tasks: List[PlannedTask] = []
    for position, raw_task in enumerate(raw_tasks, start=1):
        task_node = raw_task if isinstance(raw_task, dict) else {}
        duration = max(0, _as_int(task_node.get("estimatedDurationHours"), DEFAULT_DURATION_HOURS))
        task_start, task_end = cursor.place(duration)
        description = _as_text(task_node.get("description"), None)
        order_index = _as_int(task_node.get("orderIndex"), position)

        tasks.append(
            PlannedTask(
                title=_as_text(task_node.get("title"), DEFAULT_TITLE),
                description=description or DEFAULT_DESCRIPTION,
                detailed_description=_as_text(
                    task_node.get("detailedDescription"),
                    description or DEFAULT_DETAILED_DESCRIPTION,
                ),
                steps=_as_text_list(task_node.get("steps")),
                estimated_duration_hours=duration,
                priority=_as_enum(TaskPriority, task_node.get("priority"), TaskPriority.MEDIUM),
                status=_as_enum(TaskStatus, task_node.get("status"), TaskStatus.PENDING),
                order_index=order_index if 1 <= order_index <= MAX_ORDER_INDEX else position,
                dependencies=_as_int_list(task_node.get("dependencies")),
                start_date=task_start,
                end_date=task_end,
            )
        )
        logger.debug("Parsed task %s: %s (%sh)", position, tasks[-1].title, duration)

    if end_date is None or end_date < cursor.position:
        end_date = cursor.position

    return TaskPlan(
        analysis=_as_text(payload.get("analysis"), DEFAULT_ANALYSIS),
        tasks=tasks,
        total_tasks=len(tasks),
        estimated_total_hours=cursor.total_hours,
        suggested_start_date=start_date,
        suggested_end_date=end_date,
        recommendations=_as_text_list(payload.get("recommendations")),
        risks=_as_text_list(payload.get("risks")),
    )


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        logger.warning("Could not parse datetime: %s", value)
        return None


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
        return int(number) if math.isfinite(number) else default
    return default


def _as_text(value: Any, default: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        return value if value.strip() else default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _as_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items: List[str] = []
    for item in value:
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, (int, float, bool)):
            items.append(str(item))
    return items


def _as_int_list(value: Any) -> List[int]:
    if not isinstance(value, list):
        return []
    numbers: List[int] = []
    for item in value:
        number = _as_int(item, -1)
        if 0 <= number <= MAX_ORDER_INDEX:
            numbers.append(number)
    return numbers


def _as_enum(enum_cls, value: Any, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            logger.debug("Unknown %s literal %r; using %s", enum_cls.__name__, value, default.value)
    return default
