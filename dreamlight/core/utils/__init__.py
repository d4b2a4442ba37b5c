"""Shared helpers."""

from .helpers import (
    calculate_burn_rate,
    calculate_percentage,
    calculate_roi,
    iso,
    month_range,
    paginate,
    parse_uuid,
    round_half_up,
    sanitize_filename,
    to_float,
    total_pages,
)

__all__ = [
    "calculate_burn_rate",
    "calculate_percentage",
    "calculate_roi",
    "iso",
    "month_range",
    "paginate",
    "parse_uuid",
    "round_half_up",
    "sanitize_filename",
    "to_float",
    "total_pages",
]
