"""Tests for the resource action ledger."""

from dataclasses import FrozenInstanceError

import pytest

from conftest import Conditional, FileResource, ServiceResource
from convergereport.actions.collection import ActionCollection, redact_sensitive
from convergereport.models.action import ActionRecord, ActionStatus
from convergereport.models.resource import Resource, RunContext


def make_collection() -> ActionCollection:
    collection = ActionCollection()
    collection.register(object())
    return collection


def run_action(
    collection: ActionCollection,
    resource: FileResource,
    status: str = "updated",
    current: FileResource | None = None,
) -> None:
    collection.resource_action_start(resource, "create")
    if current is not None:
        collection.resource_current_state_loaded(resource, "create", current)
    if status == "updated":
        collection.resource_updated(resource, "create")
    elif status == "up_to_date":
        collection.resource_up_to_date(resource, "create")
    collection.resource_completed(resource)


def test_nothing_is_tracked_without_consumers() -> None:
    collection = ActionCollection()
    resource = FileResource("/tmp/untracked")

    collection.resource_action_start(resource, "create")
    collection.resource_updated(resource, "create")
    collection.resource_completed(resource)
    collection.converge_complete()

    assert len(collection) == 0
    assert collection.pending_updates == ()
    assert collection.total_res_count == 0


def test_up_to_date_action_is_recorded(file_resource: FileResource) -> None:
    collection = make_collection()
    current = FileResource("/tmp/a-file.txt", owner="root", mode="0600")

    run_action(collection, file_resource, status="up_to_date", current=current)

    [record] = collection.action_records
    assert record.status == ActionStatus.UP_TO_DATE
    assert record.action == "create"
    assert record.nesting_level == 0
    assert record.current_resource is current
    assert record.elapsed_time == 0.25
    assert record.frozen
    assert collection.total_res_count == 1
    assert collection.pending_updates == ()


def test_nested_actions_complete_before_their_parent() -> None:
    collection = make_collection()
    parent = FileResource("/tmp/parent")
    child = FileResource("/tmp/child")

    collection.resource_action_start(parent, "create")
    collection.resource_action_start(child, "create")
    collection.resource_updated(child, "create")
    collection.resource_completed(child)
    collection.resource_updated(parent, "create")
    collection.resource_completed(parent)

    records = collection.action_records
    assert [rec.new_resource.name for rec in records] == ["/tmp/child", "/tmp/parent"]
    assert [rec.nesting_level for rec in records] == [1, 0]


def test_nesting_level_matches_stack_depth_at_start() -> None:
    collection = make_collection()
    resources = [FileResource(f"/tmp/level-{depth}") for depth in range(4)]

    for resource in resources:
        collection.resource_action_start(resource, "create")
    for resource in reversed(resources):
        collection.resource_up_to_date(resource, "create")
        collection.resource_completed(resource)

    assert len(collection) == 4
    levels = {rec.new_resource.name: rec.nesting_level for rec in collection}
    assert levels == {f"/tmp/level-{depth}": depth for depth in range(4)}


def test_skipped_and_failed_details() -> None:
    collection = make_collection()
    skipped = FileResource("/tmp/skipped")
    failed = FileResource("/tmp/failed")
    error = IOError("disk full")

    collection.resource_action_start(skipped, "create")
    collection.resource_skipped(skipped, "create", Conditional('not_if "true"'))
    collection.resource_completed(skipped)
    collection.resource_action_start(failed, "create")
    collection.resource_failed(failed, "create", error)
    collection.resource_completed(failed)

    skipped_rec, failed_rec = collection.action_records
    assert skipped_rec.status == ActionStatus.SKIPPED
    assert skipped_rec.conditional.to_text() == 'not_if "true"'
    assert skipped_rec.exception is None
    assert failed_rec.status == ActionStatus.FAILED
    assert failed_rec.exception is error
    assert not failed_rec.success
    assert failed_rec.current_resource is None


def test_status_event_without_action_in_progress_is_fatal() -> None:
    collection = make_collection()

    with pytest.raises(RuntimeError):
        collection.resource_updated(FileResource("/tmp/nope"), "create")


def test_terminal_status_is_set_once() -> None:
    collection = make_collection()
    resource = FileResource("/tmp/twice")
    collection.resource_action_start(resource, "create")
    collection.resource_updated(resource, "create")

    with pytest.raises(RuntimeError):
        collection.resource_failed(resource, "create", ValueError("late"))


def test_completed_records_are_frozen(file_resource: FileResource) -> None:
    collection = make_collection()
    run_action(collection, file_resource)

    [record] = collection.action_records
    with pytest.raises(FrozenInstanceError):
        record.status = ActionStatus.FAILED


def test_sensitive_resource_is_reported_by_name_only() -> None:
    collection = make_collection()
    resource = FileResource("/etc/secret.key", owner="root", content="hunter2")
    resource.sensitive = True

    run_action(collection, resource)

    [record] = collection.action_records
    assert record.new_resource is not resource
    assert record.new_resource.name == "/etc/secret.key"
    assert "hunter2" not in record.new_resource.state_for_resource_reporter().values()
    assert set(record.new_resource.state_for_resource_reporter().values()) == {None}


class TemplateResource(Resource):
    resource_name = "template"
    state_properties = ("owner", "variables")

    def __init__(self, name: str, owner: str, **properties):
        super().__init__(name, action="create", owner=owner, **properties)


def test_sensitive_resource_without_name_only_constructor_is_still_recorded() -> None:
    collection = make_collection()
    resource = TemplateResource("/etc/app.conf", "root", variables={"password": "hunter2"})
    resource.sensitive = True

    collection.resource_action_start(resource, "create")
    collection.resource_updated(resource, "create")
    collection.resource_completed(resource)

    [record] = collection.action_records
    assert collection.pending_updates == ()
    assert record.frozen
    assert record.status == ActionStatus.UPDATED
    assert record.new_resource is not resource
    assert str(record.new_resource) == "template[/etc/app.conf]"
    assert record.new_resource.state_for_resource_reporter() == {}


def test_redact_sensitive_leaves_plain_resources_alone() -> None:
    resource = FileResource("/tmp/plain", content="visible")
    record = ActionRecord(resource, "create", 0)

    assert redact_sensitive(record).new_resource is resource


def test_converge_failed_records_unprocessed_resources() -> None:
    collection = make_collection()
    done = FileResource("/tmp/done")
    pending = [ServiceResource("nginx", action="start"), ServiceResource("redis")]
    run_context = RunContext(resource_collection=[done, *pending])
    collection.cookbook_compilation_start(run_context)

    collection.resource_action_start(done, "create")
    collection.resource_failed(done, "create", RuntimeError("boom"))
    collection.resource_completed(done)
    done.executed_by_runner = True
    collection.converge_failed(RuntimeError("boom"))

    assert len(collection) == 3
    unprocessed = collection.action_records[1:]
    assert [rec.new_resource.name for rec in unprocessed] == ["nginx", "redis"]
    assert [rec.action for rec in unprocessed] == ["start", "nothing"]
    assert all(rec.status == ActionStatus.UNPROCESSED for rec in unprocessed)
    assert all(rec.nesting_level == 0 and rec.frozen for rec in unprocessed)
    assert run_context.action_collection is collection
    assert collection.run_context is run_context


def test_unprocessed_resource_with_several_actions() -> None:
    collection = make_collection()
    resource = ServiceResource("nginx", action=["enable", "start"])
    collection.cookbook_compilation_start(RunContext(resource_collection=[resource]))

    collection.converge_complete()

    assert [rec.action for rec in collection] == ["enable", "start"]


def test_converge_without_compiled_run_adds_nothing() -> None:
    collection = make_collection()

    collection.converge_failed(RuntimeError("failed before compile"))

    assert len(collection) == 0


def test_filtered_collection_by_nesting_and_status() -> None:
    collection = make_collection()
    parent = FileResource("/tmp/parent")
    child = FileResource("/tmp/child")
    quiet = FileResource("/tmp/quiet")

    collection.resource_action_start(parent, "create")
    collection.resource_action_start(child, "create")
    collection.resource_updated(child, "create")
    collection.resource_completed(child)
    collection.resource_updated(parent, "create")
    collection.resource_completed(parent)
    run_action(collection, quiet, status="up_to_date")

    top_level_updated = collection.filtered_collection(
        max_nesting=0, up_to_date=False, skipped=False, failed=False, unprocessed=False
    )
    all_updated = collection.filtered_collection(up_to_date=False)

    assert [rec.new_resource.name for rec in top_level_updated] == ["/tmp/parent"]
    assert [rec.new_resource.name for rec in all_updated] == ["/tmp/child", "/tmp/parent"]
    assert len(collection.filtered_collection()) == 3
