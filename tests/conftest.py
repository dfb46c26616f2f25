"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from convergereport.core.config import DataCollectorSettings, Settings
from convergereport.models.resource import Resource
from convergereport.models.run import Node, RunStatus

COLLECTOR_URL = "https://collector.example.com/data-collector/v0/"


class FileResource(Resource):
    """Minimal file resource."""

    resource_name = "file"
    identity_property = "path"
    state_properties = ("owner", "mode", "content")
    default_action = "create"

    def __init__(self, name: str, action: str | list[str] | None = None, **properties: Any):
        properties.setdefault("path", name)
        super().__init__(name, action, **properties)


class DiffFileResource(FileResource):
    """File resource that reports a diff."""

    diff = "--- a\n+++ b\n-old\n+new"


class ServiceResource(Resource):
    resource_name = "service"
    identity_property = "service_name"
    state_properties = ("running", "enabled")

    def __init__(self, name: str, action: str | list[str] | None = None, **properties: Any):
        properties.setdefault("service_name", name)
        super().__init__(name, action, **properties)


class BrokenResource(Resource):
    """Resource whose identity and state accessors raise."""

    resource_name = "broken"

    @property
    def identity(self) -> Any:
        raise KeyError("lazy identity")

    def state_for_resource_reporter(self) -> dict[str, Any]:
        raise RuntimeError("state accessor exploded")


class Conditional:
    """Guard conditional as the resource DSL describes it."""

    def __init__(self, text: str):
        self._text = text

    def to_text(self) -> str:
        return self._text


class MockCollector:
    """Records HTTP posts; refuses connections to selected hosts."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.refused_hosts: set[str] = set()
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host in self.refused_hosts:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
        self.requests.append(request)
        return httpx.Response(self.status_code, json={})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def messages(self, url: str | None = None) -> list[dict[str, Any]]:
        return [
            json.loads(request.content)
            for request in self.requests
            if url is None or str(request.url) == url
        ]


@pytest.fixture
def guid_path(tmp_path: Path) -> Path:
    return tmp_path / "chef_guid"


@pytest.fixture
def settings(guid_path: Path) -> Settings:
    """Client-mode settings reporting to a single collector."""
    return Settings(
        chef_guid_path=str(guid_path),
        data_collector=DataCollectorSettings(server_url=COLLECTOR_URL),
    )


@pytest.fixture
def collector() -> MockCollector:
    return MockCollector()


@pytest.fixture
def node() -> Node:
    return Node(
        name="spitfire",
        run_list=["recipe[lobster]", "role[rage]", "recipe[fist]"],
    )


@pytest.fixture
def run_status(node: Node) -> RunStatus:
    return RunStatus(node=node)


@pytest.fixture
def file_resource() -> FileResource:
    resource = FileResource("/tmp/a-file.txt", owner="root", mode="0644")
    resource.cookbook_name = "monkey"
    resource.cookbook_version = "1.2.3"
    resource.recipe_name = "atlas"
    resource.elapsed_time = 0.25
    return resource
