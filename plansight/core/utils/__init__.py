"""Utility helpers shared by parsers and enrichment."""

from plansight.core.utils.units import (
    calculate_percentage,
    extract_statistics_total,
    parse_bytes,
    parse_duration_ms,
    parse_number,
    parse_submission_time,
)

__all__ = [
    "calculate_percentage",
    "extract_statistics_total",
    "parse_bytes",
    "parse_duration_ms",
    "parse_number",
    "parse_submission_time",
]
