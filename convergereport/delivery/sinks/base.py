"""Base class for report sinks."""

from abc import ABC, abstractmethod

from convergereport.models.message import ReportMessage


class ReportSink(ABC):
    """Abstract base class for report destinations."""

    @property
    @abstractmethod
    def sink_type(self) -> str:
        """Return sink type identifier."""
        pass

    @property
    @abstractmethod
    def location(self) -> str:
        """Return the URL or path this sink writes to."""
        pass

    @abstractmethod
    async def send(self, message: ReportMessage) -> None:
        """Deliver a message.

        Args:
            message: Built report message

        Raises:
            Exception: Any delivery failure, left to the caller to classify
        """
        pass

    async def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass
