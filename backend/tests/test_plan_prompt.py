from __future__ import annotations

from datetime import datetime, timedelta, timezone

from taskplanner.services.plan_prompt import build_plan_prompt, days_between

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_prompt_restates_goal_and_schema() -> None:
    prompt = build_plan_prompt("  Learn to bake sourdough  ", now=NOW)

    assert "Goal: Learn to bake sourdough\n" in prompt
    for field in (
        '"analysis"',
        '"totalTasks"',
        '"estimatedTotalHours"',
        '"suggestedStartDate": "2025-01-01T12:00:00"',
        '"suggestedEndDate": "<calculate based on total hours>"',
        '"detailedDescription"',
        '"estimatedDurationHours"',
        '"orderIndex"',
        '"dependencies"',
        '"recommendations"',
        '"risks"',
    ):
        assert field in prompt
    assert "Target Completion Date" not in prompt
    assert "Constraints:" not in prompt


def test_prompt_includes_quantity_guidance_and_raw_json_rule() -> None:
    prompt = build_plan_prompt("Renovate the kitchen", now=NOW)

    assert "For simple goals: 3-5 tasks" in prompt
    assert "For moderate goals: 5-8 tasks" in prompt
    assert "For complex goals: 8-15 tasks" in prompt
    assert "Return ONLY the JSON object, no markdown code blocks" in prompt


def test_prompt_with_target_date_reports_days_available() -> None:
    target = NOW + timedelta(days=14, hours=3)
    prompt = build_plan_prompt("Run a half marathon", target, now=NOW)

    assert "Target Completion Date: 2025-01-15" in prompt
    assert "Days Available: 14 days" in prompt
    assert "fit realistically within this timeframe" in prompt
    assert '"suggestedEndDate": "2025-01-15T15:00:00"' in prompt


def test_days_available_may_be_negative() -> None:
    overdue = NOW - timedelta(days=3, hours=1)

    assert days_between(NOW, overdue) == -3
    assert "Days Available: -3 days" in build_plan_prompt("Ship it", overdue, now=NOW)


def test_constraints_are_listed() -> None:
    prompt = build_plan_prompt("Plan a wedding", constraints=["Budget under $10k", " ", "Weekends only"], now=NOW)

    assert "Constraints: Budget under $10k, Weekends only" in prompt


def test_prompt_is_deterministic_for_fixed_inputs() -> None:
    first = build_plan_prompt("Start a garden", NOW + timedelta(days=30), ["Small balcony"], now=NOW)
    second = build_plan_prompt("Start a garden", NOW + timedelta(days=30), ["Small balcony"], now=NOW)

    assert first == second
