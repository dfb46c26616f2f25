"""Ledger of resource actions taken during a run."""

from collections.abc import Iterator
from typing import Any

from convergereport.core.logging import get_logger
from convergereport.events.base import EventSubscriber
from convergereport.models.action import ActionRecord, ActionStatus
from convergereport.models.resource import Resource, RunContext
from convergereport.observability.metrics import ACTION_RECORDS

logger = get_logger(__name__)


def redact_sensitive(record: ActionRecord) -> ActionRecord:
    """Replace the after-state of a sensitive resource with a name-only copy.

    Args:
        record: In-flight record

    Resources that cannot build their own redacted copy are replaced by a
    generic name-only resource carrying the same type tag.

    Args:
        record: In-flight record

    Returns:
        The same record, redacted in place when its resource is sensitive
    """
    resource = record.new_resource
    if not resource.sensitive:
        return record

    try:
        record.new_resource = resource.redacted()
    except Exception as e:
        logger.warning(
            "Could not redact sensitive resource, reporting it by name only",
            resource=resource.resource_name,
            error=str(e),
        )
        placeholder = Resource(resource.name)
        placeholder.resource_name = resource.resource_name
        placeholder.sensitive = True
        record.new_resource = placeholder
    return record


class ActionCollection(EventSubscriber):
    """Aggregate resource action events into an ordered ledger.

    Nothing is tracked until a consumer registers. In-flight actions live on
    a stack so that actions driven from inside another action (nested
    resource collections) get a nesting level one deeper than their parent.
    Records reach the ledger in completion order, so nested children appear
    before the parent that drove them.
    """

    def __init__(self, events: Any = None):
        """Initialize collection.

        Args:
            events: Event dispatcher used to announce this collection
        """
        self._events = events
        self._action_records: list[ActionRecord] = []
        self._pending_updates: list[ActionRecord] = []
        self._consumers: list[Any] = []
        self._run_context: RunContext | None = None
        self.total_res_count = 0

    @property
    def action_records(self) -> tuple[ActionRecord, ...]:
        return tuple(self._action_records)

    @property
    def pending_updates(self) -> tuple[ActionRecord, ...]:
        return tuple(self._pending_updates)

    @property
    def consumers(self) -> tuple[Any, ...]:
        return tuple(self._consumers)

    @property
    def run_context(self) -> RunContext | None:
        return self._run_context

    def __iter__(self) -> Iterator[ActionRecord]:
        return iter(self.action_records)

    def __len__(self) -> int:
        return len(self._action_records)

    def filtered_collection(
        self,
        max_nesting: int | None = None,
        up_to_date: bool = True,
        skipped: bool = True,
        updated: bool = True,
        failed: bool = True,
        unprocessed: bool = True,
    ) -> list[ActionRecord]:
        """Select ledger records by nesting level and status.

        Args:
            max_nesting: Deepest nesting level to include (None for all)
            up_to_date: Include up-to-date records
            skipped: Include skipped records
            updated: Include updated records
            failed: Include failed records
            unprocessed: Include unprocessed records

        Returns:
            Matching records in ledger order
        """
        wanted = {
            ActionStatus.UP_TO_DATE: up_to_date,
            ActionStatus.SKIPPED: skipped,
            ActionStatus.UPDATED: updated,
            ActionStatus.FAILED: failed,
            ActionStatus.UNPROCESSED: unprocessed,
        }
        return [
            rec
            for rec in self._action_records
            if (max_nesting is None or rec.nesting_level <= max_nesting)
            and wanted.get(rec.status, False)
        ]

    def register(self, consumer: Any) -> None:
        """Register interest in action tracking for the rest of the run."""
        self._consumers.append(consumer)
        logger.debug("Action collection consumer registered", consumer=type(consumer).__name__)

    # Event handlers

    def cookbook_compilation_start(self, run_context: RunContext) -> None:
        run_context.action_collection = self
        self._run_context = run_context
        if self._events is not None:
            self._events.enqueue("action_collection_registration", self)

    def converge_complete(self) -> None:
        if not self._consumers:
            return
        self._detect_unprocessed_resources()

    def converge_failed(self, exception: BaseException) -> None:
        if not self._consumers:
            return
        self._detect_unprocessed_resources()

    def resource_action_start(
        self,
        resource: Resource,
        action: str,
        notification_type: str | None = None,
        notifier: Any = None,
    ) -> None:
        if not self._consumers:
            return
        self._pending_updates.append(
            ActionRecord(resource, str(action), len(self._pending_updates))
        )

    def resource_current_state_loaded(
        self, resource: Resource, action: str, current_resource: Resource | None
    ) -> None:
        if not self._consumers:
            return
        self._current_record().current_resource = current_resource

    def resource_up_to_date(self, resource: Resource, action: str) -> None:
        if not self._consumers:
            return
        self._current_record().mark(ActionStatus.UP_TO_DATE)
        self.total_res_count += 1

    def resource_skipped(self, resource: Resource, action: str, conditional: Any) -> None:
        if not self._consumers:
            return
        self._current_record().mark(ActionStatus.SKIPPED, conditional=conditional)
        self.total_res_count += 1

    def resource_updated(self, resource: Resource, action: str) -> None:
        if not self._consumers:
            return
        self._current_record().mark(ActionStatus.UPDATED)
        self.total_res_count += 1

    def resource_failed(self, resource: Resource, action: str, exception: BaseException) -> None:
        if not self._consumers:
            return
        self._current_record().mark(ActionStatus.FAILED, exception=exception)
        self.total_res_count += 1

    def resource_completed(self, resource: Resource) -> None:
        if not self._consumers:
            return
        record = self._current_record()
        record.elapsed_time = record.new_resource.elapsed_time
        redact_sensitive(record)
        self._append(self._pending_updates.pop())

    # Internals

    def _current_record(self) -> ActionRecord:
        if not self._pending_updates:
            raise RuntimeError("Resource event received with no resource action in progress")
        return self._pending_updates[-1]

    def _append(self, record: ActionRecord) -> None:
        record.freeze()
        self._action_records.append(record)
        ACTION_RECORDS.labels(status=record.status.value if record.status else "none").inc()

    def _detect_unprocessed_resources(self) -> None:
        """Add records for declared resources the run never reached."""
        if self._run_context is None:
            return

        added = 0
        for resource in self._run_context.all_resources():
            if resource.executed_by_runner:
                continue
            for action in resource.action:
                record = ActionRecord(resource, str(action), 0)
                record.status = ActionStatus.UNPROCESSED
                self._append(record)
                added += 1

        if added:
            logger.info("Unprocessed resources recorded", count=added)
