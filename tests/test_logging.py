"""Tests for logging setup."""

import json

import pytest
import structlog

from convergereport.core.config import Settings
from convergereport.core.logging import get_logger, setup_logging
from convergereport.observability.context import bind_run_context, clear_run_context
from convergereport.pipeline import create_run_telemetry


def test_json_logs_carry_run_context(capsys) -> None:
    setup_logging(Settings(debug=False, log_level="INFO"))
    try:
        bind_run_context("run-42", "spitfire")
        get_logger("convergereport.test", component="reporter").info("Run start reported")
        clear_run_context()
        get_logger("convergereport.test").debug("Filtered out")
    finally:
        structlog.reset_defaults()

    lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["event"] == "Run start reported"
    assert entry["run_id"] == "run-42"
    assert entry["node_name"] == "spitfire"
    assert entry["component"] == "reporter"
    assert entry["level"] == "info"


@pytest.mark.asyncio
async def test_run_telemetry_can_configure_logging(capsys, settings: Settings) -> None:
    settings = settings.model_copy(update={"log_level": "WARNING"})
    try:
        telemetry = create_run_telemetry(settings, configure_logging=True)
        get_logger("convergereport.test").info("Below threshold")
        get_logger("convergereport.test").warning("Collector unreachable", attempt=1)
    finally:
        structlog.reset_defaults()
    await telemetry.aclose()

    lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
    assert [json.loads(line)["event"] for line in lines] == ["Collector unreachable"]
