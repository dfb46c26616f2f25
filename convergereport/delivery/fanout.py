"""Delivery of report messages to the primary endpoint and secondary sinks."""

import asyncio
from typing import Callable

import httpx

from convergereport.core.config import DataCollectorSettings
from convergereport.core.logging import get_logger
from convergereport.delivery.sinks.base import ReportSink
from convergereport.delivery.sinks.file import FileSink
from convergereport.delivery.sinks.http import HttpSink
from convergereport.models.message import ReportMessage
from convergereport.observability.metrics import REPORT_DELIVERIES

logger = get_logger(__name__)

# Primary endpoint failures that are reported and survived rather than crashing the run
PRIMARY_DELIVERY_ERRORS = (httpx.TransportError, httpx.HTTPStatusError)


class ReportDelivery:
    """Fan a built message out to every configured destination.

    The primary endpoint is attempted first. Secondary sinks are then driven
    concurrently, each isolated from the others' failures.
    """

    def __init__(
        self,
        config: DataCollectorSettings,
        on_primary_disabled: Callable[[], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize delivery.

        Args:
            config: Report destination settings
            on_primary_disabled: Called when a primary failure should stop
                further reporting for this run
            transport: HTTP transport override (tests, proxies)
        """
        self._config = config
        self._on_primary_disabled = on_primary_disabled
        self._client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

        headers = self.headers()
        self._primary: HttpSink | None = None
        if config.server_url:
            self._primary = HttpSink(config.server_url, self._client, headers)

        self._secondary: list[ReportSink] = []
        if config.output_locations is not None:
            self._secondary.extend(
                HttpSink(url, self._client, headers) for url in config.output_locations.urls
            )
            self._secondary.extend(FileSink(path) for path in config.output_locations.files)

    def headers(self) -> dict[str, str]:
        """Request headers for every HTTP sink."""
        headers = {"Content-Type": "application/json"}
        if self._config.token is not None:
            headers["x-data-collector-token"] = self._config.token
            headers["x-data-collector-auth"] = "version=1.0"
        return headers

    async def deliver(self, message: ReportMessage) -> None:
        """Deliver a message to the primary endpoint and all secondary sinks.

        Args:
            message: Built report message, shared by every sink

        Raises:
            httpx.TransportError: Primary failed and raise_on_failure is set
            httpx.HTTPStatusError: Primary failed and raise_on_failure is set
        """
        await self._send_to_primary(message)
        await self._send_to_output_locations(message)

    async def close(self) -> None:
        """Close the shared HTTP client."""
        for sink in self._secondary:
            await sink.close()
        await self._client.aclose()

    async def _send_to_primary(self, message: ReportMessage) -> None:
        if self._primary is None:
            return

        try:
            await self._primary.send(message)
            REPORT_DELIVERIES.labels(sink="primary", status="success").inc()
        except PRIMARY_DELIVERY_ERRORS as e:
            REPORT_DELIVERIES.labels(sink="primary", status="failed").inc()

            # Secondary sinks still need later messages
            if self._config.output_locations is None and self._on_primary_disabled:
                self._on_primary_disabled()

            if isinstance(e, httpx.HTTPStatusError):
                code = str(e.response.status_code)
            else:
                code = "Exception Code Empty"

            if self._config.raise_on_failure:
                logger.error(
                    "Error while reporting run to data collector",
                    url=self._primary.location,
                    code=code,
                    error=str(e),
                )
                raise

            logger.info(
                "Error while reporting run to data collector",
                url=self._primary.location,
                code=code,
                error=str(e),
                note="This is normal if you do not have a data collector",
            )

    async def _send_to_output_locations(self, message: ReportMessage) -> None:
        if not self._secondary:
            return
        await asyncio.gather(*(self._send_to_sink(sink, message) for sink in self._secondary))

    async def _send_to_sink(self, sink: ReportSink, message: ReportMessage) -> None:
        try:
            await sink.send(message)
            REPORT_DELIVERIES.labels(sink=sink.sink_type, status="success").inc()
        except Exception as e:
            REPORT_DELIVERIES.labels(sink=sink.sink_type, status="failed").inc()
            logger.warning(
                "Data collector failed to send to output location",
                sink=sink.sink_type,
                location=sink.location,
                error=str(e),
            )
