"""Prometheus metrics definitions."""

from prometheus_client import Counter

# Ledger metrics
ACTION_RECORDS = Counter(
    "converge_action_records_total",
    "Total resource action records added to the ledger",
    ["status"],
)

# Report metrics
REPORT_MESSAGES = Counter(
    "converge_report_messages_total",
    "Total report messages built",
    ["message_type"],
)

REPORT_DELIVERIES = Counter(
    "converge_report_deliveries_total",
    "Total report deliveries per sink",
    ["sink", "status"],
)
