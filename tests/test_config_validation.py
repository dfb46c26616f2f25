"""Tests for report destination validation."""

from pathlib import Path

import pytest

from convergereport.core.config import DataCollectorSettings, OutputLocations
from convergereport.reporter.config_validation import (
    ConfigValidationError,
    validate_output_locations,
    validate_server_url,
)


def test_valid_configuration_passes(tmp_path: Path) -> None:
    config = DataCollectorSettings(
        server_url="https://collector.example.com/data-collector/v0/",
        output_locations=OutputLocations(
            urls=["http://backup.example.com:8080/ingest"],
            files=[str(tmp_path / "reports.jsonl")],
        ),
    )

    validate_server_url(config)
    validate_output_locations(config)


def test_unconfigured_destinations_pass() -> None:
    config = DataCollectorSettings()

    validate_server_url(config)
    validate_output_locations(config)


@pytest.mark.parametrize("url", ["collector.example.com", "ftp://collector.example.com/", "https://"])
def test_invalid_server_url(url: str) -> None:
    with pytest.raises(ConfigValidationError):
        validate_server_url(DataCollectorSettings(server_url=url))


def test_empty_output_locations() -> None:
    with pytest.raises(ConfigValidationError):
        validate_output_locations(DataCollectorSettings(output_locations=OutputLocations()))


def test_output_file_must_be_writable_location(tmp_path: Path) -> None:
    directory = DataCollectorSettings(output_locations=OutputLocations(files=[str(tmp_path)]))
    missing_parent = DataCollectorSettings(
        output_locations=OutputLocations(files=[str(tmp_path / "missing" / "reports.jsonl")])
    )

    with pytest.raises(ConfigValidationError):
        validate_output_locations(directory)
    with pytest.raises(ConfigValidationError):
        validate_output_locations(missing_parent)


def test_invalid_output_url() -> None:
    config = DataCollectorSettings(output_locations=OutputLocations(urls=["not a url"]))

    with pytest.raises(ConfigValidationError):
        validate_output_locations(config)
