"""Append-only file report sink."""

import asyncio
from pathlib import Path

from convergereport.delivery.sinks.base import ReportSink
from convergereport.models.message import ReportMessage


class FileSink(ReportSink):
    """Append each message as one JSON line; the file is opened per message."""

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()

    @property
    def sink_type(self) -> str:
        return "file"

    @property
    def location(self) -> str:
        return str(self._path)

    async def send(self, message: ReportMessage) -> None:
        await asyncio.to_thread(self._append, message.to_json() + "\n")

    def _append(self, line: str) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line)
