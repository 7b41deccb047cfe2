"""Prompt rendering for plan generation."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from taskplanner.services.scheduling import as_utc

ISO_LOCAL_FORMAT = "%Y-%m-%dT%H:%M:%S"

PLAN_JSON_SCHEMA = """{{
  "analysis": "Brief analysis of the goal and approach (2-3 sentences)",
  "totalTasks": <number_of_tasks>,
  "estimatedTotalHours": <sum_of_all_task_hours>,
  "suggestedStartDate": "{start}",
  "suggestedEndDate": "{end}",
  "tasks": [
    {{
      "title": "Task name",
      "description": "Brief 1-2 sentence summary of the task",
      "detailedDescription": "Comprehensive 3-5 paragraph explanation covering: what needs to be done, why it's important, key considerations, potential challenges, and expected outcomes. Be specific and actionable.",
      "steps": [
        "Step 1: Specific action to take",
        "Step 2: Next specific action",
        "Step 3: Continue with detailed steps"
      ],
      "estimatedDurationHours": 5,
      "priority": "HIGH",
      "status": "PENDING",
      "orderIndex": 1,
      "dependencies": []
    }}
  ],
  "recommendations": ["recommendation 1", "recommendation 2"],
  "risks": ["risk 1", "risk 2"]
}}"""

PLAN_REQUIREMENTS = (
    "CRITICAL REQUIREMENTS:\n\n"
    "### TASK QUANTITY\n"
    "- Analyze the goal complexity and create an appropriate number of tasks (3-15 tasks based on complexity)\n"
    "- For simple goals: 3-5 tasks\n"
    "- For moderate goals: 5-8 tasks\n"
    "- For complex goals: 8-15 tasks\n\n"
    "### TASK DESCRIPTIONS\n"
    "- 'description': Short summary (1-2 sentences) - what the task is about\n"
    "- 'detailedDescription': Comprehensive explanation (3-5 paragraphs, 200-400 words) that includes:\n"
    "  * What needs to be accomplished and why it matters\n"
    "  * Key activities and deliverables\n"
    "  * Important considerations and best practices\n"
    "  * Potential challenges and how to address them\n"
    "  * Expected outcomes and success criteria\n"
    "- 'steps': Array of 3-8 specific, actionable steps to complete the task\n"
    "  * Each step should be clear and concrete\n"
    "  * Steps should be in logical order\n"
    "  * Include specific tools, resources, or methods when relevant\n\n"
    "### OTHER REQUIREMENTS\n"
    "- Each task must have: title, description, detailedDescription, steps, estimatedDurationHours, priority, "
    "status, orderIndex, dependencies\n"
    "- Vary the task durations realistically: simple tasks (1-4 hours), moderate (4-8 hours), complex (8-20 hours)\n"
    "- Priority must be one of: LOW, MEDIUM, HIGH, CRITICAL\n"
    "- Distribute priorities realistically (not all tasks should be HIGH or CRITICAL)\n"
    "- Status must always be: PENDING\n"
    "- estimatedDurationHours must be a realistic whole number based on task complexity\n"
    "- orderIndex should be sequential starting from 1\n"
    "- dependencies should be an empty array [] or an array of orderIndex values for prerequisite tasks\n"
    "- totalTasks should equal the number of tasks in the array\n"
    "- estimatedTotalHours should be the sum of all task hours\n"
    "- Be realistic and specific: consider the goal's actual requirements when creating descriptions\n"
    "- Return ONLY the JSON object, no markdown code blocks, no explanations\n"
)


def days_between(now: datetime, target: datetime) -> int:
    """Whole days from ``now`` to ``target``, truncated toward zero; negative when overdue."""
    delta = as_utc(target) - as_utc(now)
    return int(delta.total_seconds() / 86400)


def build_plan_prompt(
    description: str,
    target_date: Optional[datetime] = None,
    constraints: Optional[Iterable[str]] = None,
    *,
    now: Optional[datetime] = None,
) -> str:
    """Render the planning instruction for one goal.

    Pure apart from reading the clock when ``now`` is omitted.
    """
    current = as_utc(now or datetime.now(timezone.utc))
    lines = [
        "You are an expert project manager and task planner. "
        "Break down the following goal into detailed, actionable tasks with comprehensive descriptions.",
        "",
        f"Goal: {description.strip()}",
    ]

    if target_date is not None:
        target = as_utc(target_date)
        lines.append(f"Target Completion Date: {target.date().isoformat()}")
        lines.append(f"Days Available: {days_between(current, target)} days")
        lines.append("Please ensure the total estimated hours fit realistically within this timeframe.")

    constraint_list = [item.strip() for item in (constraints or []) if item and item.strip()]
    if constraint_list:
        lines.append(f"Constraints: {', '.join(constraint_list)}")

    end_hint = (
        as_utc(target_date).strftime(ISO_LOCAL_FORMAT)
        if target_date is not None
        else "<calculate based on total hours>"
    )
    schema = PLAN_JSON_SCHEMA.format(start=current.strftime(ISO_LOCAL_FORMAT), end=end_hint)

    lines.append("")
    lines.append("Provide a structured task breakdown in JSON format with this EXACT structure:")
    lines.append(schema)
    lines.append("")
    return "\n".join(lines) + "\n" + PLAN_REQUIREMENTS
