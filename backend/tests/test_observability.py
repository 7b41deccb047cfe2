"""Observability wiring must stay inert unless explicitly enabled."""
from __future__ import annotations

import importlib

from taskplanner.observability import tracing


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import taskplanner.core.config as core_config
    import taskplanner.observability.client as client_module
    import taskplanner.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")
    assert client_module.init_opik() is None


def test_trace_is_a_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("plan.generate", metadata={"goal_length": 3}) as span:
        assert span is None
