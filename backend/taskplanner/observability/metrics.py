"""Metric emission on top of Opik traces."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from taskplanner.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived trace; a no-op when Opik is disabled."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    logger.debug("metric %s=%s", name, value)
    with tracing.trace(f"metric:{name}", metadata=payload):
        pass
