"""Resource interface consumed by the action ledger and the reporter.

Resources are defined by the convergence engine's DSL. This module only fixes
the attributes the telemetry pipeline reads from them, plus the run context
that owns the declared resource set.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar


class Resource:
    """A declared unit of desired state.

    Subclasses set ``resource_name`` (the type tag), ``identity_property`` and
    ``state_properties`` (the properties reported as before/after state).
    Resources that can describe their change also expose a ``diff`` attribute.
    """

    resource_name: ClassVar[str] = "resource"
    identity_property: ClassVar[str] = "name"
    state_properties: ClassVar[tuple[str, ...]] = ()
    default_action: ClassVar[str] = "nothing"

    def __init__(
        self,
        name: str,
        action: str | list[str] | None = None,
        **properties: Any,
    ):
        self.name = name
        if action is None:
            action = self.default_action
        self.action: list[str] = [action] if isinstance(action, str) else list(action)
        self.sensitive = False
        self.ignore_failure = False
        self.elapsed_time: float | None = None
        self.executed_by_runner = False
        self.cookbook_name: str | None = None
        self.cookbook_version: str | None = None
        self.recipe_name: str | None = None
        for key, value in properties.items():
            setattr(self, key, value)

    @property
    def identity(self) -> Any:
        return getattr(self, self.identity_property)

    def state_for_resource_reporter(self) -> dict[str, Any]:
        """Return the reportable state of this resource."""
        return {prop: getattr(self, prop, None) for prop in self.state_properties}

    def redacted(self) -> "Resource":
        """Return a name-only copy of this resource with no property values."""
        return type(self)(self.name)

    def __str__(self) -> str:
        return f"{self.resource_name}[{self.name}]"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"


@dataclass
class RunContext:
    """Compiled state of a run: the declared resource set in declaration order."""

    resource_collection: list[Resource] = field(default_factory=list)
    action_collection: Any = None

    def all_resources(self) -> list[Resource]:
        return list(self.resource_collection)
