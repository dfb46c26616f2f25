"""Resource action record domain models."""

from dataclasses import FrozenInstanceError, dataclass, field
from enum import Enum
from typing import Any

from convergereport.models.resource import Resource


class ActionStatus(str, Enum):
    """Outcome of a resource action."""

    UNPROCESSED = "unprocessed"  # Never reached because the run failed first
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    SKIPPED = "skipped"  # Skipped by a guard conditional
    FAILED = "failed"


@dataclass
class ActionRecord:
    """One attempted (or never reached) resource action.

    The declared resource doubles as the after-state; ``current_resource`` is
    the loaded before-state and stays ``None`` when the probe never ran.
    Records are mutable only while in flight and frozen once they reach the
    ledger.
    """

    new_resource: Resource
    action: str
    nesting_level: int
    current_resource: Resource | None = None
    status: ActionStatus | None = None
    exception: BaseException | None = None
    conditional: Any = None
    elapsed_time: float | None = None
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise FrozenInstanceError(f"cannot assign to field {name!r} of a completed action record")
        super().__setattr__(name, value)

    def freeze(self) -> None:
        """Mark the record as final."""
        super().__setattr__("_frozen", True)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def success(self) -> bool:
        return self.exception is None

    def mark(
        self,
        status: ActionStatus,
        *,
        exception: BaseException | None = None,
        conditional: Any = None,
    ) -> None:
        """Set the terminal status of this record.

        Args:
            status: Terminal status
            exception: Failure, required iff status is failed
            conditional: Guard that skipped the action, iff status is skipped

        Raises:
            RuntimeError: If a terminal status was already set
        """
        if self.status is not None:
            raise RuntimeError(
                f"{self.new_resource} action {self.action} already marked {self.status.value}"
            )
        self.status = status
        if status == ActionStatus.FAILED:
            self.exception = exception
        elif status == ActionStatus.SKIPPED:
            self.conditional = conditional
