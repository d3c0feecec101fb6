"""
Centralized Prometheus metrics definitions for the Chess Sync application.

This module uses the prometheus-client library to define all metrics that will
be exposed by the application for monitoring and alerting. Grouping them here
provides a single, clear overview of the application's instrumentation points.
"""
from prometheus_client import Counter, Histogram

# A common prefix for all application-specific metrics.
PREFIX = "chess_sync"

# --- Extraction Metrics ---

PGN_EXTRACTIONS_TOTAL = Counter(
    f"{PREFIX}_pgn_extractions_total",
    "Total number of PGN timing extractions, by the path that produced the moves.",
    ["source"],  # e.g., source="structured", "fallback", "empty"
)

# --- Sync Metrics ---

GAMES_SYNCED_TOTAL = Counter(
    f"{PREFIX}_games_synced_total",
    "Total number of archive games written to the store.",
    ["action"],  # e.g., action="created", "updated"
)

GAMES_SKIPPED_TOTAL = Counter(
    f"{PREFIX}_games_skipped_total",
    "Total number of archive games skipped because their processing failed.",
    ["reason"],
)

ARCHIVE_FETCH_DURATION_SECONDS = Histogram(
    f"{PREFIX}_archive_fetch_duration_seconds",
    "Histogram of the time taken to download one monthly archive.",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, float("inf"))
)

# --- Retry Metrics ---

TRANSIENT_ERRORS_TOTAL = Counter(
    f"{PREFIX}_transient_errors_total",
    "Total number of transient errors that triggered a retry.",
    ["system"]  # e.g., system="archive_http", "game_store"
)
