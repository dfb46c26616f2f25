"""Structured descriptions of run failures."""

from typing import Any


class ErrorDescription:
    """Titled, sectioned explanation of a failure."""

    def __init__(self, title: str):
        self.title = title
        self.sections: list[dict[str, str]] = []

    def section(self, heading: str, text: str) -> "ErrorDescription":
        self.sections.append({heading: text})
        return self

    def for_json(self) -> dict[str, Any]:
        return {"title": self.title, "sections": [dict(s) for s in self.sections]}


def _exception_text(exception: BaseException) -> str:
    return f"{type(exception).__name__}: {exception}"


class ErrorMapper:
    """Map failure events to error descriptions.

    Override individual methods to give richer explanations for a given
    failure point.
    """

    def resource_failed(self, resource: Any, action: str, exception: BaseException) -> ErrorDescription:
        return ErrorDescription(
            f"Error executing action `{action}` on resource '{resource}'"
        ).section(type(exception).__name__, str(exception))

    def registration_failed(self, node_name: str, exception: BaseException, config: Any = None) -> ErrorDescription:
        return ErrorDescription("Node Registration Error:").section(
            "Unexpected Error:", _exception_text(exception)
        ).section("Node Name", str(node_name))

    def node_load_failed(self, node_name: str, exception: BaseException, config: Any = None) -> ErrorDescription:
        return ErrorDescription("Error Loading Node:").section(
            "Unexpected Error:", _exception_text(exception)
        ).section("Node Name", str(node_name))

    def run_list_expand_failed(self, node: Any, exception: BaseException) -> ErrorDescription:
        return ErrorDescription("Error Expanding Run List:").section(
            "Unexpected Error:", _exception_text(exception)
        )

    def cookbook_resolution_failed(self, expanded_run_list: Any, exception: BaseException) -> ErrorDescription:
        return ErrorDescription("Error Resolving Cookbooks for Run List:").section(
            "Unexpected Error:", _exception_text(exception)
        )

    def cookbook_sync_failed(self, cookbooks: Any, exception: BaseException) -> ErrorDescription:
        return ErrorDescription("Error Syncing Cookbooks:").section(
            "Unexpected Error:", _exception_text(exception)
        )

    def file_load_failed(self, path: str | None, exception: BaseException) -> ErrorDescription:
        description = ErrorDescription("Recipe Compile Error" + (f" in {path}" if path else ""))
        return description.section(type(exception).__name__, str(exception))
