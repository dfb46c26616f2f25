"""Fail-fast validation of report destinations."""

from pathlib import Path
from urllib.parse import urlparse

from convergereport.core.config import DataCollectorSettings


class ConfigValidationError(ValueError):
    """Report destination configuration is unusable."""


def _validate_url(url: str, setting: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ConfigValidationError(
            f"{setting} must be an absolute http(s) URL, got {url!r}"
        )


def validate_server_url(config: DataCollectorSettings) -> None:
    """Check the primary endpoint, if one is configured.

    Raises:
        ConfigValidationError: If the URL is not an absolute http(s) URL
    """
    if config.server_url:
        _validate_url(config.server_url, "data_collector.server_url")


def validate_output_locations(config: DataCollectorSettings) -> None:
    """Check the secondary sinks, if any are configured.

    Raises:
        ConfigValidationError: If locations are empty or a url/file is unusable
    """
    locations = config.output_locations
    if locations is None:
        return

    if not locations.urls and not locations.files:
        raise ConfigValidationError(
            "data_collector.output_locations must list at least one url or file"
        )

    for url in locations.urls:
        _validate_url(url, "data_collector.output_locations.urls")

    for file_name in locations.files:
        path = Path(file_name).expanduser()
        if path.is_dir():
            raise ConfigValidationError(
                f"data_collector.output_locations.files entry {file_name!r} is a directory"
            )
        if not path.parent.is_dir():
            raise ConfigValidationError(
                f"data_collector.output_locations.files entry {file_name!r} "
                "is in a directory that does not exist"
            )
