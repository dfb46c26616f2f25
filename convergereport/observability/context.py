"""Run-scoped logging context."""

from typing import Any

import structlog

_RUN_KEYS = ("run_id", "node_name")


def bind_run_context(run_id: str | None, node_name: str | None = None) -> None:
    """Bind run identity to every log line emitted for the rest of the run."""
    values: dict[str, Any] = {"run_id": run_id}
    if node_name:
        values["node_name"] = node_name
    structlog.contextvars.bind_contextvars(**values)


def clear_run_context() -> None:
    """Unbind run identity."""
    structlog.contextvars.unbind_contextvars(*_RUN_KEYS)

