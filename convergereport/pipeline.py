"""Wiring of the run telemetry subscribers."""

from dataclasses import dataclass

import httpx

from convergereport.actions.collection import ActionCollection
from convergereport.core.config import Settings, get_settings
from convergereport.core.logging import get_logger, setup_logging
from convergereport.events.dispatcher import EventDispatcher
from convergereport.reporter.error_mapper import ErrorMapper
from convergereport.reporter.reporter import Reporter

logger = get_logger(__name__)


@dataclass
class RunTelemetry:
    """Dispatcher plus the subscribers observing one run."""

    events: EventDispatcher
    action_collection: ActionCollection
    reporter: Reporter

    async def aclose(self) -> None:
        """Release HTTP resources held by the reporter."""
        await self.reporter.close()


def create_run_telemetry(
    settings: Settings | None = None,
    error_mapper: ErrorMapper | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    configure_logging: bool = False,
) -> RunTelemetry:
    """Create a dispatcher with the reporter and action collection registered.

    Args:
        settings: Application settings (defaults to cached settings)
        error_mapper: Error description builder for the reporter
        transport: HTTP transport override
        configure_logging: Set up structlog from settings; leave False when
            the host process configures logging itself

    Returns:
        Run telemetry ready to receive run events
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)
    events = EventDispatcher()
    reporter = Reporter(events, settings=settings, error_mapper=error_mapper, transport=transport)
    action_collection = ActionCollection(events)
    events.register(reporter)
    events.register(action_collection)
    logger.debug("Run telemetry created", subscribers=len(events.subscribers))
    return RunTelemetry(events=events, action_collection=action_collection, reporter=reporter)
