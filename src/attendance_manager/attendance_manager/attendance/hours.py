"""Hour arithmetic for attendance cycles.

Pure functions over instants. Missing inputs yield ``None`` instead of raising,
because half-finished records (checked in, not yet out) are the common case.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

_CENT = Decimal("0.01")


def elapsed_hours(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """Hours between two instants, clamped to zero when clocks disagree."""
    if start is None or end is None:
        return None
    hours = (end - start).total_seconds() / 3600
    if math.isnan(hours) or hours < 0:
        return 0.0
    return hours


def round_hours(value: Optional[float]) -> Optional[float]:
    """Round half-up to 2 decimals for storage and display."""
    if value is None:
        return None
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def net_worked_hours(
    check_in: Optional[datetime],
    check_out: Optional[datetime],
    lunch_start: Optional[datetime] = None,
    lunch_end: Optional[datetime] = None,
    *,
    now: Optional[datetime] = None,
) -> Optional[float]:
    """Elapsed check-in -> check-out time minus the lunch break.

    A break without an end is still running: it counts up to ``now`` (falling
    back to ``check_out``). Result is unrounded and never negative.
    """

    total = elapsed_hours(check_in, check_out)
    if total is None:
        return None
    if lunch_start is not None:
        total -= elapsed_hours(lunch_start, lunch_end or now or check_out) or 0.0
    return max(total, 0.0)


def format_hours(value: Optional[float]) -> str:
    """Decimal hours as HH:MM."""
    if value is None:
        return "-"
    minutes = int(round(value * 60))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
