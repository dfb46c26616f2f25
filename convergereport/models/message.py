"""Report message wire models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer

from convergereport.models.run import Deprecation


_RESOURCE_OPTIONAL_KEYS = frozenset(
    {"cookbook_name", "cookbook_version", "recipe_name", "conditional", "error_message"}
)


def _drop_unset_optionals(data: dict[str, Any], keys: frozenset[str]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if not (key in keys and value is None)}


class ReportMessage(BaseModel):
    """Base for immutable report documents."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert message to its JSON-compatible wire form."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        """Serialize message to its wire JSON."""
        return self.model_dump_json(by_alias=True)


class ErrorBlock(ReportMessage):
    """Run failure details."""

    error_class: str = Field(..., alias="class", description="Exception class name")
    message: str = Field(..., description="Exception message")
    backtrace: list[str] | None = Field(default=None, description="Formatted traceback lines")
    description: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured description from the failing component",
    )


class ResourceReport(ReportMessage):
    """Per-action entry of the converge message."""

    type: str
    name: str
    id: str
    after: dict[str, Any] = Field(default_factory=dict)
    before: dict[str, Any] = Field(default_factory=dict)
    duration: str = Field(default="", description="Elapsed milliseconds, empty if never completed")
    delta: str = Field(default="", description="Diff for updated/failed resources")
    ignore_failure: bool = False
    result: str = Field(..., description="Declared action")
    status: str
    cookbook_name: str | None = None
    cookbook_version: str | None = None
    recipe_name: str | None = None
    conditional: str | None = None
    error_message: str | None = None

    @model_serializer(mode="wrap")
    def _serialize(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return _drop_unset_optionals(handler(self), _RESOURCE_OPTIONAL_KEYS)


class RunStartMessage(ReportMessage):
    """Message sent when a run starts."""

    chef_server_fqdn: str
    entity_uuid: str
    id: str | None
    message_version: Literal["1.0.0"] = "1.0.0"
    message_type: Literal["run_start"] = "run_start"
    node_name: str | None
    organization_name: str
    run_id: str | None
    source: Literal["chef_solo", "chef_client"]
    start_time: str | None


class RunConvergeMessage(ReportMessage):
    """Message sent when a run completes or fails."""

    chef_server_fqdn: str
    entity_uuid: str
    expanded_run_list: Any = Field(default_factory=dict)
    id: str | None
    message_version: Literal["1.1.0"] = "1.1.0"
    message_type: Literal["run_converge"] = "run_converge"
    node: dict[str, Any] = Field(default_factory=dict)
    node_name: str | None
    organization_name: str
    resources: list[ResourceReport] = Field(default_factory=list)
    run_id: str | None
    run_list: list[str] = Field(default_factory=list)
    policy_name: str | None = None
    policy_group: str | None = None
    start_time: str | None
    end_time: str | None
    source: Literal["chef_solo", "chef_client"]
    status: Literal["success", "failure"]
    total_resource_count: int = Field(..., ge=0)
    updated_resource_count: int = Field(..., ge=0)
    deprecations: list[Deprecation] = Field(default_factory=list)
    error: ErrorBlock | None = None

    @model_serializer(mode="wrap")
    def _serialize(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return _drop_unset_optionals(handler(self), frozenset({"error"}))
