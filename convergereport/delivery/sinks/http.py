"""HTTP report sink."""

import httpx

from convergereport.core.logging import get_logger
from convergereport.delivery.sinks.base import ReportSink
from convergereport.models.message import ReportMessage

logger = get_logger(__name__)


class HttpSink(ReportSink):
    """POST report messages as JSON to a collector endpoint."""

    def __init__(self, url: str, client: httpx.AsyncClient, headers: dict[str, str]):
        """Initialize sink.

        Args:
            url: Endpoint URL
            client: Shared HTTP client (owned by the caller)
            headers: Request headers
        """
        self._url = url
        self._client = client
        self._headers = dict(headers)

    @property
    def sink_type(self) -> str:
        return "http"

    @property
    def location(self) -> str:
        return self._url

    async def send(self, message: ReportMessage) -> None:
        """POST the message.

        Raises:
            httpx.TransportError: On connection, timeout or protocol failures
            httpx.HTTPStatusError: On a non-success response
        """
        response = await self._client.post(
            self._url,
            content=message.to_json().encode("utf-8"),
            headers=self._headers,
        )
        response.raise_for_status()
        logger.debug("Report posted", url=self._url, status_code=response.status_code)
