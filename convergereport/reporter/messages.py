"""Construction of run start and run converge messages.

Builders are pure functions of the reporter's run context: calling them twice
on the same context yields equal messages (and byte-identical JSON).
"""

import json
import traceback
from dataclasses import dataclass, field
from typing import Any

from convergereport.actions.collection import ActionCollection
from convergereport.core.config import Settings
from convergereport.core.logging import get_logger
from convergereport.models.action import ActionRecord, ActionStatus
from convergereport.models.message import (
    ErrorBlock,
    ResourceReport,
    RunConvergeMessage,
    RunStartMessage,
)
from convergereport.models.run import Deprecation, Node, RunStatus
from convergereport.reporter.helpers import (
    chef_server_fqdn,
    collector_source,
    iso8601,
    organization,
)
from convergereport.reporter.node_uuid import NodeUUIDStore

logger = get_logger(__name__)


@dataclass
class RunReportContext:
    """Run-scoped state accumulated by the reporter."""

    settings: Settings
    node_uuid: NodeUUIDStore
    run_status: RunStatus | None = None
    node: Node | None = None
    node_name: str | None = None
    expanded_run_list: Any = field(default_factory=dict)
    deprecations: dict[Deprecation, None] = field(default_factory=dict)
    error_description: dict[str, Any] = field(default_factory=dict)
    action_collection: ActionCollection | None = None

    def add_deprecation(self, deprecation: Deprecation) -> None:
        """Record a deprecation; repeats collapse into the first occurrence."""
        self.deprecations.setdefault(deprecation, None)

    @property
    def reported_node_name(self) -> str | None:
        return self.node.name if self.node is not None else self.node_name


def build_run_start_message(context: RunReportContext) -> RunStartMessage:
    """Build the message announcing the start of a run.

    Args:
        context: Reporter run context

    Returns:
        Run start message
    """
    run_status = context.run_status
    run_id = run_status.run_id if run_status else None
    return RunStartMessage(
        chef_server_fqdn=chef_server_fqdn(context.settings),
        entity_uuid=context.node_uuid.node_uuid(context.node),
        id=run_id,
        node_name=context.reported_node_name,
        organization_name=organization(context.settings),
        run_id=run_id,
        source=collector_source(context.settings),
        start_time=iso8601(run_status.start_time) if run_status else None,
    )


def build_run_converge_message(context: RunReportContext, status: str) -> RunConvergeMessage:
    """Build the message describing a finished run.

    Args:
        context: Reporter run context
        status: "success" or "failure"

    Returns:
        Run converge message
    """
    run_status = context.run_status
    node = context.node
    run_id = run_status.run_id if run_status else None
    resources = all_resource_reports(context.action_collection)

    fields: dict[str, Any] = {
        "chef_server_fqdn": chef_server_fqdn(context.settings),
        "entity_uuid": context.node_uuid.node_uuid(node),
        "expanded_run_list": _for_json(context.expanded_run_list),
        "id": run_id,
        "node": node.for_json() if node is not None else {},
        "node_name": context.reported_node_name,
        "organization_name": organization(context.settings),
        "resources": resources,
        "run_id": run_id,
        "run_list": list(node.run_list) if node is not None else [],
        "policy_name": node.policy_name if node is not None else None,
        "policy_group": node.policy_group if node is not None else None,
        "start_time": iso8601(run_status.start_time) if run_status else None,
        "end_time": iso8601(run_status.end_time) if run_status else None,
        "source": collector_source(context.settings),
        "status": status,
        "total_resource_count": len(resources),
        "updated_resource_count": updated_resource_count(context.action_collection),
        "deprecations": list(context.deprecations),
    }

    if run_status is not None and run_status.exception is not None:
        fields["error"] = error_block(run_status.exception, context.error_description)

    return RunConvergeMessage(**fields)


def updated_resource_count(action_collection: ActionCollection | None) -> int:
    """Count top-level records that changed the system."""
    if action_collection is None:
        return 0
    return len(
        action_collection.filtered_collection(
            max_nesting=0,
            up_to_date=False,
            skipped=False,
            unprocessed=False,
            failed=False,
        )
    )


def all_resource_reports(action_collection: ActionCollection | None) -> list[ResourceReport]:
    if action_collection is None:
        return []
    return [action_record_for_json(rec) for rec in action_collection.action_records]


def action_record_for_json(record: ActionRecord) -> ResourceReport:
    """Render one ledger record as a per-resource report entry."""
    new_resource = record.new_resource

    fields: dict[str, Any] = {
        "type": str(new_resource.resource_name),
        "name": str(new_resource.name),
        "id": safe_resource_identity(new_resource),
        "after": safe_state_for_resource_reporter(new_resource),
        "before": safe_state_for_resource_reporter(record.current_resource),
        "duration": "" if record.elapsed_time is None else str(int(record.elapsed_time * 1000)),
        "delta": _delta(record),
        "ignore_failure": bool(new_resource.ignore_failure),
        "result": str(record.action),
        "status": action_record_status_for_json(record),
    }

    if new_resource.cookbook_name:
        fields["cookbook_name"] = new_resource.cookbook_name
        fields["cookbook_version"] = new_resource.cookbook_version
        fields["recipe_name"] = new_resource.recipe_name

    if record.status == ActionStatus.SKIPPED:
        fields["conditional"] = _conditional_text(record.conditional)
    if record.exception is not None:
        fields["error_message"] = str(record.exception)

    return ResourceReport(**fields)


def safe_resource_identity(resource: Any) -> str:
    """Identity of a resource, or a placeholder if computing it raises."""
    try:
        return str(resource.identity)
    except Exception as e:
        return f"unknown identity (due to {type(e).__name__})"


def safe_state_for_resource_reporter(resource: Any) -> dict[str, Any]:
    """Reportable state of a resource, or an empty snapshot if it cannot be read."""
    if resource is None:
        return {}
    try:
        state = resource.state_for_resource_reporter()
        return json.loads(json.dumps(state, default=str))
    except Exception as e:
        logger.debug(
            "Resource state unavailable",
            resource_type=type(resource).__name__,
            error=str(e),
        )
        return {}


def action_record_status_for_json(record: ActionRecord) -> str:
    if record.status is None:
        return ""
    if record.status == ActionStatus.UP_TO_DATE:
        return "up-to-date"
    return record.status.value


def error_block(exception: BaseException, description: dict[str, Any]) -> ErrorBlock:
    backtrace = None
    if exception.__traceback__ is not None:
        backtrace = [line.rstrip("\n") for line in traceback.format_tb(exception.__traceback__)]
    return ErrorBlock(
        error_class=type(exception).__name__,
        message=str(exception),
        backtrace=backtrace,
        description=description,
    )


def _delta(record: ActionRecord) -> str:
    if record.status not in (ActionStatus.UPDATED, ActionStatus.FAILED):
        return ""
    diff = getattr(record.new_resource, "diff", None)
    return "" if diff is None else str(diff)


def _conditional_text(conditional: Any) -> str:
    to_text = getattr(conditional, "to_text", None)
    if callable(to_text):
        return str(to_text())
    return "" if conditional is None else str(conditional)


def _for_json(value: Any) -> Any:
    for_json = getattr(value, "for_json", None)
    if callable(for_json):
        return for_json()
    return value
