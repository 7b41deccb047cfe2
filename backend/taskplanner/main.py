"""Main FastAPI application for the Smart Task Planner backend."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from taskplanner.api.routes.goals import router as goals_router
from taskplanner.core.config import settings
from taskplanner.core.logging import configure_logging
from taskplanner.core.middleware import RequestIDMiddleware
from taskplanner.observability.client import init_opik
from taskplanner.observability.tracing import trace

configure_logging(log_level=settings.log_level, debug=settings.debug)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)
app.include_router(goals_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
