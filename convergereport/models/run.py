"""Run-level domain models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Node(BaseModel):
    """Node the run converges."""

    name: str = Field(..., description="Node name")
    chef_environment: str = Field(default="_default", description="Environment name")
    run_list: list[str] = Field(default_factory=list, description="Declared run list items")
    policy_name: str | None = Field(default=None, description="Policyfile name")
    policy_group: str | None = Field(default=None, description="Policyfile group")
    automatic: dict[str, Any] = Field(
        default_factory=dict,
        description="Automatic attributes (the entity UUID is published here)",
    )
    normal: dict[str, Any] = Field(default_factory=dict, description="Normal attributes")

    def for_json(self) -> dict[str, Any]:
        """Convert node to its reported representation."""
        return self.model_dump(mode="json")


class Deprecation(BaseModel):
    """Deprecation notice emitted during the run."""

    model_config = ConfigDict(frozen=True)

    message: str
    url: str | None = None
    location: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunStatus:
    """Status of a single convergence run."""

    node: Node | None = None
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: datetime | None = None
    end_time: datetime | None = None
    exception: BaseException | None = None

    def start_clock(self) -> None:
        self.start_time = _utcnow()

    def stop_clock(self) -> None:
        self.end_time = _utcnow()
