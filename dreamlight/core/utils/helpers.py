"""Small numeric and parsing helpers shared by the managers."""

import calendar
import math
import re
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Tuple
from uuid import UUID

from ..constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..exceptions import NotFoundError, ValidationError


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding (``round(12.5) == 12``); the
    percentages shown on dashboards round 12.5 up to 13.
    """
    return int(math.floor(value + 0.5))


def calculate_percentage(part: float, total: float) -> int:
    if not total:
        return 0
    return round_half_up(part / total * 100)


def calculate_burn_rate(total_expense: float, total_budget: float) -> int:
    if not total_budget or total_budget <= 0:
        return 0
    return round_half_up(total_expense / total_budget * 100)


def calculate_roi(income: float, expense: float, investment: float) -> float:
    if not investment or investment <= 0:
        return 0.0
    return round((income - expense) / investment * 100, 2)


def to_float(value: Any) -> float:
    """Decimal/None/str -> float. Money columns come back as Decimal."""
    if value is None:
        return 0.0
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


def paginate(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
    """Clamp page/limit and return (page, limit, offset)."""
    page_num = max(1, int(page or 1))
    limit_num = min(max(1, int(limit or DEFAULT_PAGE_SIZE)), MAX_PAGE_SIZE)
    return page_num, limit_num, (page_num - 1) * limit_num


def total_pages(count: int, limit: int) -> int:
    return math.ceil(count / limit) if limit else 0


def parse_uuid(value: Any, entity: str = "Resource") -> UUID:
    """Parse an id from a path/body. Malformed ids behave like unknown ones."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError.for_entity(entity)


def month_range(month: str) -> Tuple[date, date]:
    """'2025-03' -> (2025-03-01, 2025-03-31)."""
    match = re.fullmatch(r"(\d{4})-(\d{1,2})", month or "")
    if not match:
        raise ValidationError("month must be in YYYY-MM format")
    year, month_num = int(match.group(1)), int(match.group(2))
    if not 1 <= month_num <= 12:
        raise ValidationError("month must be in YYYY-MM format")
    last_day = calendar.monthrange(year, month_num)[1]
    return date(year, month_num, 1), date(year, month_num, last_day)


def sanitize_filename(name: str) -> str:
    """Lowercase, non-alphanumerics replaced with underscores."""
    return re.sub(r"[^a-z0-9]", "_", name, flags=re.IGNORECASE).lower()


def iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
