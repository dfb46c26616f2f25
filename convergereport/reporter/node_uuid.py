"""Persisted per-node entity UUID."""

import uuid
from pathlib import Path

from convergereport.core.logging import get_logger
from convergereport.models.run import Node

logger = get_logger(__name__)


class NodeUUIDStore:
    """Entity UUID correlating reports of the same node across runs.

    The UUID is read from ``path`` when present; otherwise it is taken from
    the node's ``chef_guid`` automatic attribute, or generated, and written
    to ``path`` so later runs reuse it.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._uuid: str | None = None

    @property
    def path(self) -> Path:
        return self._path

    def node_uuid(self, node: Node | None = None) -> str:
        """Return the entity UUID, creating and persisting it on first use.

        Args:
            node: Node whose automatic attributes may already carry a UUID

        Returns:
            UUID string
        """
        if self._uuid is None:
            self._uuid = self._read() or self._generate(node)
        return self._uuid

    def _read(self) -> str | None:
        if not self._path.exists():
            return None
        value = self._path.read_text(encoding="utf-8").strip()
        return value or None

    def _generate(self, node: Node | None) -> str:
        value = None
        if node is not None:
            value = node.automatic.get("chef_guid")
        value = value or str(uuid.uuid4())

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(value, encoding="utf-8")
        logger.info("Entity UUID generated", path=str(self._path))
        return value
