from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from activity_report.domain.entities import ReportWindow

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month(value: str) -> tuple[int, int]:
    m = _MONTH_RE.match(value.strip())
    if not m:
        raise ValueError(f"Invalid month {value!r}: expected YYYY-MM, e.g. 2026-01")
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month {value!r}: month must be between 01 and 12")
    return year, month


def calculate_report_window(
    override_month: str | None = None, now: datetime | None = None
) -> ReportWindow:
    """First to last instant of a UTC month.

    Defaults to the month before `now`; `override_month` (YYYY-MM) selects a
    specific month instead.
    """
    if override_month:
        year, month = parse_month(override_month)
    else:
        now = now or datetime.now(timezone.utc)
        year, month = now.year, now.month - 1
        if month == 0:
            year, month = year - 1, 12

    start = datetime(year, month, 1, tzinfo=timezone.utc)
    next_month = datetime(year + (month == 12), month % 12 + 1, 1, tzinfo=timezone.utc)
    end = next_month - timedelta(milliseconds=1)
    return ReportWindow(start_date=start, end_date=end)
