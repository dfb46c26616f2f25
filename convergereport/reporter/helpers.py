"""Values shared by the run start and run converge messages."""

import re
from datetime import datetime, timezone
from urllib.parse import urlparse

from convergereport.core.config import Settings

ORGANIZATION_PATTERN = re.compile(r"/+organizations/+([a-z0-9][a-z0-9_-]{0,254})")


def chef_server_fqdn(settings: Settings) -> str:
    """Host of the configured server, else the node name, else localhost."""
    if settings.chef_server_url is not None:
        return urlparse(settings.chef_server_url).hostname or "localhost"
    if settings.node_name is not None:
        return settings.node_name
    return "localhost"


def organization(settings: Settings) -> str:
    """Organization the node reports under.

    Solo runs use the configured reporting organization (``chef_solo`` by
    default); client runs parse it out of the server URL.
    """
    if settings.solo_run:
        return settings.data_collector.organization or "chef_solo"
    if not settings.chef_server_url:
        return "unknown_organization"
    match = ORGANIZATION_PATTERN.search(settings.chef_server_url)
    return match.group(1) if match else "unknown_organization"


def collector_source(settings: Settings) -> str:
    return "chef_solo" if settings.solo_run else "chef_client"


def iso8601(value: datetime | None) -> str | None:
    """Format a timestamp as ISO-8601 UTC with a ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
