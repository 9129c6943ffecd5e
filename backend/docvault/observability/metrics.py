"""Prometheus metrics for DocVault."""

from prometheus_client import Counter, Histogram

uploads_accepted_total = Counter(
    "docvault_uploads_accepted_total",
    "Uploads accepted and queued for scanning",
    ["kind"]  # kind: document|version
)

scan_enqueue_failures_total = Counter(
    "docvault_scan_enqueue_failures_total",
    "Uploads rolled back because the scan job could not be enqueued",
)

scan_outcomes_total = Counter(
    "docvault_scan_outcomes_total",
    "Scan attempts by outcome",
    ["outcome"]  # outcome: clean|malicious|transient|skipped
)

scan_duration_seconds = Histogram(
    "docvault_scan_duration_seconds",
    "Time spent in the scanner collaborator per attempt",
    buckets=[0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0]
)

scan_dead_letters_total = Counter(
    "docvault_scan_dead_letters_total",
    "Scan jobs dead-lettered after exhausting their retry budget",
)

status_transitions_skipped_total = Counter(
    "docvault_status_transitions_skipped_total",
    "Status transitions rejected because the version was no longer pending",
    ["target"]
)

downloads_total = Counter(
    "docvault_downloads_total",
    "Successful version downloads",
)
