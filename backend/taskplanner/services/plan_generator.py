"""Plan generation pipeline: prompt, model call, parse, degrade on failure."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict, Optional

from taskplanner.observability.metrics import log_metric
from taskplanner.observability.tracing import trace
from taskplanner.services.fallback_plan import build_fallback_plan
from taskplanner.services.llm_client import LLMConfigurationError, LLMTransportError, PlanLLMClient
from taskplanner.services.plan_parser import PlanParseError, parse_plan_response
from taskplanner.services.plan_prompt import build_plan_prompt
from taskplanner.services.plan_types import PlanRequest, TaskPlan

logger = logging.getLogger(__name__)


def generate_task_plan(
    request: PlanRequest,
    *,
    llm_client: Optional[PlanLLMClient] = None,
    request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TaskPlan:
    """Return a usable plan for ``request``; AI and parsing failures yield the fallback plan."""
    client = llm_client or PlanLLMClient()
    started_at = now or datetime.now(timezone.utc)
    trace_metadata: Dict[str, Any] = {
        "goal_length": len(request.description),
        "has_target_date": request.target_date is not None,
        "constraints": len(request.constraints),
    }

    if not client.configured:
        logger.warning("GEMINI_API_KEY missing; using fallback plan.")
        return _fallback(request, started_at, reason="not_configured")

    prompt = build_plan_prompt(
        request.description,
        request.target_date,
        request.constraints,
        now=started_at,
    )
    logger.debug("Prompt content:\n%s", prompt)

    start = perf_counter()
    try:
        with trace("plan.generate", metadata=trace_metadata, request_id=request_id) as plan_trace:
            content = client.complete(prompt)
            plan = parse_plan_response(content, now=started_at)
            if plan_trace:
                plan_trace.update(
                    metadata={
                        "total_tasks": plan.total_tasks,
                        "estimated_total_hours": plan.estimated_total_hours,
                    }
                )
    except LLMConfigurationError as exc:
        logger.warning("Model client not configured (%s); using fallback plan.", exc)
        return _fallback(request, started_at, reason="not_configured")
    except LLMTransportError as exc:
        kind = "client" if exc.is_client_error else "server" if exc.is_server_error else "network"
        logger.error("Model call failed (%s error, status=%s): %s", kind, exc.status_code, exc)
        return _fallback(request, started_at, reason=f"transport_{kind}")
    except PlanParseError as exc:
        logger.error("Error parsing model response: %s", exc)
        return _fallback(request, started_at, reason="parse_error")
    except Exception:
        logger.exception("Unexpected error while generating plan")
        return _fallback(request, started_at, reason="unexpected")

    latency_ms = (perf_counter() - start) * 1000
    logger.info(
        "Generated plan with %d tasks (%d hours) in %.0f ms",
        plan.total_tasks,
        plan.estimated_total_hours,
        latency_ms,
    )
    log_metric("plan.generate.success", 1, {"total_tasks": plan.total_tasks})
    log_metric("plan.generate.latency_ms", latency_ms)
    return plan


def _fallback(request: PlanRequest, now: datetime, *, reason: str) -> TaskPlan:
    log_metric("plan.fallback.used", 1, {"reason": reason})
    return build_fallback_plan(request, now=now)
