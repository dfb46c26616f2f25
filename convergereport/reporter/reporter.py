"""Run reporter: turns run events and the action ledger into report messages."""

from enum import Enum
from typing import Any

import httpx

from convergereport.actions.collection import ActionCollection
from convergereport.core.config import Settings, get_settings
from convergereport.core.logging import get_logger
from convergereport.delivery.fanout import ReportDelivery
from convergereport.events.base import EventSubscriber
from convergereport.models.message import ReportMessage
from convergereport.models.run import Deprecation, Node, RunStatus
from convergereport.observability.context import bind_run_context, clear_run_context
from convergereport.observability.metrics import REPORT_MESSAGES
from convergereport.reporter.config_validation import (
    validate_output_locations,
    validate_server_url,
)
from convergereport.reporter.error_mapper import ErrorDescription, ErrorMapper
from convergereport.reporter.messages import (
    RunReportContext,
    build_run_converge_message,
    build_run_start_message,
)
from convergereport.reporter.node_uuid import NodeUUIDStore

logger = get_logger(__name__)


class ReporterState(str, Enum):
    """Progress of the reporter through a single run."""

    IDLE = "idle"
    START_SENT = "start_sent"
    CONVERGE_SENT = "converge_sent"


class Reporter(EventSubscriber):
    """Report run start and run converge messages for one run.

    The reporter decides once, at ``run_start``, whether reporting applies to
    this run and unregisters itself from the dispatcher when it does not.
    A converge message is always preceded by a start message, which is sent
    retroactively when the run failed before ``run_started``.
    """

    def __init__(
        self,
        events: Any,
        settings: Settings | None = None,
        error_mapper: ErrorMapper | None = None,
        node_uuid: NodeUUIDStore | None = None,
        delivery: ReportDelivery | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize reporter.

        Args:
            events: Event dispatcher this reporter is registered with
            settings: Application settings (defaults to cached settings)
            error_mapper: Builds error descriptions for failure events
            node_uuid: Entity UUID store (defaults to chef_guid_path)
            delivery: Message delivery (defaults to one built from settings)
            transport: HTTP transport override for the default delivery
        """
        self._events = events
        self._settings = settings or get_settings()
        self._error_mapper = error_mapper or ErrorMapper()
        self._context = RunReportContext(
            settings=self._settings,
            node_uuid=node_uuid or NodeUUIDStore(self._settings.chef_guid_path),
        )
        self._delivery = delivery or ReportDelivery(
            self._settings.data_collector,
            on_primary_disabled=self.disable,
            transport=transport,
        )
        self._state = ReporterState.IDLE
        self._enabled: bool | None = None

    @property
    def state(self) -> ReporterState:
        return self._state

    @property
    def enabled(self) -> bool | None:
        """Enablement decided at run_start; None before that."""
        return self._enabled

    @property
    def context(self) -> RunReportContext:
        return self._context

    def should_be_enabled(self) -> bool:
        """Decide whether this run is reported.

        Returns:
            False in why-run mode, when the configured mode excludes the
            running mode, when no destination is configured, or for solo runs
            without a token; True otherwise
        """
        settings = self._settings
        config = settings.data_collector
        running_mode = settings.running_mode

        if settings.why_run:
            logger.debug("Data collector is disabled for why-run mode")
            return False
        if config.mode != "both" and config.mode != running_mode:
            logger.debug(
                "Data collector is configured for another mode, disabling it",
                configured_mode=config.mode,
                running_mode=running_mode,
            )
            return False
        if not config.server_url and config.output_locations is None:
            logger.debug("Neither data collector URL nor output locations configured, disabling it")
            return False
        if running_mode == "solo" and not config.token:
            logger.debug("Data collector token is required for solo runs, disabling it")
            return False
        if running_mode == "client" and config.token:
            logger.warning(
                "Data collector token authentication is not recommended for client-server mode"
            )
        return True

    def disable(self) -> None:
        """Stop receiving events for the rest of the run."""
        self._events.unregister(self)
        logger.info("Data collector disabled for this run")

    async def close(self) -> None:
        await self._delivery.close()

    # Event handlers

    def run_start(self, version: str, run_status: RunStatus) -> None:
        self._context.run_status = run_status
        self._enabled = self.should_be_enabled()
        if not self._enabled:
            self.disable()

    def node_load_success(self, node: Node) -> None:
        self._context.node = node

    def action_collection_registration(self, action_collection: ActionCollection) -> None:
        self._context.action_collection = action_collection
        action_collection.register(self)

    async def run_started(self, run_status: RunStatus) -> None:
        """Publish the entity UUID, validate destinations and send the start message.

        Raises:
            ConfigValidationError: If the destination configuration is unusable
        """
        self._context.run_status = run_status
        if run_status.node is not None:
            self._context.node = run_status.node
            run_status.node.automatic["chef_guid"] = self._context.node_uuid.node_uuid(run_status.node)

        validate_server_url(self._settings.data_collector)
        validate_output_locations(self._settings.data_collector)

        bind_run_context(run_status.run_id, self._context.reported_node_name)
        await self._send_run_start()

    def run_list_expanded(self, run_list_expansion: Any) -> None:
        self._context.expanded_run_list = run_list_expansion

    def deprecation(self, message: Any, location: str | None = None) -> None:
        if isinstance(message, Deprecation):
            deprecation = message
        elif isinstance(message, str):
            deprecation = Deprecation(message=message, location=location)
        else:
            deprecation = Deprecation(
                message=message.message,
                url=getattr(message, "url", None),
                location=getattr(message, "location", None) or location,
            )
        self._context.add_deprecation(deprecation)

    async def run_completed(self, node: Node, run_status: RunStatus | None = None) -> None:
        if run_status is not None:
            self._context.run_status = run_status
        await self._send_run_completion("success")

    async def run_failed(self, exception: BaseException, run_status: RunStatus | None = None) -> None:
        if run_status is not None:
            self._context.run_status = run_status
        elif self._context.run_status is None:
            self._context.run_status = RunStatus()
        if self._context.run_status.exception is None:
            self._context.run_status.exception = exception
        await self._send_run_completion("failure")

    # Failure descriptions

    def resource_failed(self, resource: Any, action: str, exception: BaseException) -> None:
        self._set_error_description(self._error_mapper.resource_failed(resource, action, exception))

    def registration_failed(self, node_name: str, exception: BaseException, config: Any = None) -> None:
        self._context.node_name = node_name
        self._set_error_description(
            self._error_mapper.registration_failed(node_name, exception, config)
        )

    def node_load_failed(self, node_name: str, exception: BaseException, config: Any = None) -> None:
        self._context.node_name = node_name
        self._set_error_description(self._error_mapper.node_load_failed(node_name, exception, config))

    def run_list_expand_failed(self, node: Any, exception: BaseException) -> None:
        self._set_error_description(self._error_mapper.run_list_expand_failed(node, exception))

    def cookbook_resolution_failed(self, expanded_run_list: Any, exception: BaseException) -> None:
        self._set_error_description(
            self._error_mapper.cookbook_resolution_failed(expanded_run_list, exception)
        )

    def cookbook_sync_failed(self, cookbooks: Any, exception: BaseException) -> None:
        self._set_error_description(self._error_mapper.cookbook_sync_failed(cookbooks, exception))

    def file_load_failed(self, path: str | None, exception: BaseException) -> None:
        self._set_error_description(self._error_mapper.file_load_failed(path, exception))

    def recipe_not_found(self, exception: BaseException) -> None:
        self._set_error_description(self._error_mapper.file_load_failed(None, exception))

    # Internals

    def _set_error_description(self, description: ErrorDescription) -> None:
        self._context.error_description = description.for_json()

    async def _deliver(self, message: ReportMessage, message_type: str) -> None:
        REPORT_MESSAGES.labels(message_type=message_type).inc()
        await self._delivery.deliver(message)

    async def _send_run_start(self) -> None:
        message = build_run_start_message(self._context)
        await self._deliver(message, "run_start")
        self._state = ReporterState.START_SENT
        logger.info("Run start reported")

    async def _send_run_completion(self, status: str) -> None:
        if self._state == ReporterState.CONVERGE_SENT:
            logger.warning("Run completion already reported, ignoring", status=status)
            return

        # The run may have failed before run_started
        if self._state != ReporterState.START_SENT:
            await self._send_run_start()

        message = build_run_converge_message(self._context, status)
        await self._deliver(message, "run_converge")
        self._state = ReporterState.CONVERGE_SENT
        logger.info(
            "Run converge reported",
            status=status,
            total_resource_count=message.total_resource_count,
            updated_resource_count=message.updated_resource_count,
        )
        clear_run_context()
