import calendar
from datetime import date, datetime
from typing import Optional

import pandas as pd
from dateutil.relativedelta import relativedelta


def add_months(d: date, months: int) -> date:
    """Add N months; day is clamped to the target month's last day"""
    return d + relativedelta(months=months)


def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def get_due_date(month_start: date, offset: int, emi_day: int) -> date:
    """Due date `offset` months after month_start, pinned to emi_day (clamped to month end)"""
    target = month_start.replace(day=1) + relativedelta(months=offset)
    return target.replace(day=min(emi_day, days_in_month(target)))


def parse_date(d) -> Optional[date]:
    """Parse a date from a string, date, datetime or Timestamp"""
    if d is None:
        return None
    if isinstance(d, (pd.Timestamp, datetime)):
        return d.date()
    if isinstance(d, date):
        return d
    if isinstance(d, str):
        if not d.strip():
            return None
        return date.fromisoformat(d[:10])
    if pd.isna(d):
        return None
    return None


def to_iso(d: date) -> str:
    return d.strftime("%Y-%m-%d")
