"""
Centralized Prometheus metrics definitions for the chess-patterns engine.

This module uses the prometheus-client library to define all metrics that will
be exposed by the application for monitoring and alerting. Grouping them here
provides a single, clear overview of the application's instrumentation points.
"""
from prometheus_client import Counter, Histogram

# A common prefix for all application-specific metrics.
PREFIX = "chess_patterns"

# --- Sequencing Metrics ---

SEQUENCES_PARSED_TOTAL = Counter(
    f"{PREFIX}_sequences_parsed_total",
    "Total number of raw records successfully turned into move sequences.",
)

SEQUENCES_MALFORMED_TOTAL = Counter(
    f"{PREFIX}_sequences_malformed_total",
    "Total number of raw records rejected because of an unplayable token.",
)

# --- Signature Metrics ---

SIGNATURES_EXTRACTED_TOTAL = Counter(
    f"{PREFIX}_signatures_extracted_total",
    "Total number of temporal signatures extracted.",
    ["archetype"],
)

DEGENERATE_SIGNATURES_TOTAL = Counter(
    f"{PREFIX}_degenerate_signatures_total",
    "Total number of signatures extracted from sequences with no activity.",
)

# --- Matching & Prediction Metrics ---

CANDIDATES_SCORED_TOTAL = Counter(
    f"{PREFIX}_candidates_scored_total",
    "Total number of corpus entries scored against a target signature.",
)

EMPTY_MATCH_RESULTS_TOTAL = Counter(
    f"{PREFIX}_empty_match_results_total",
    "Total number of searches that returned no qualifying match.",
    ["reason"],  # e.g., reason="empty_corpus", "below_threshold"
)

PREDICTIONS_UNAVAILABLE_TOTAL = Counter(
    f"{PREFIX}_predictions_unavailable_total",
    "Total number of trajectory predictions made without a historical cohort.",
)

# --- Pipeline Metrics ---

PIPELINE_DURATION_SECONDS = Histogram(
    f"{PREFIX}_pipeline_duration_seconds",
    "Histogram of the time taken to run a full analysis pipeline.",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, float("inf"))
)

CORPUS_GAMES_INDEXED_TOTAL = Counter(
    f"{PREFIX}_corpus_games_indexed_total",
    "Total number of games turned into corpus entries.",
)
