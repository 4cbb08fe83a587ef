"""Due-date driven installment status"""
from datetime import date
from typing import Optional

import pandas as pd

from config.constants import InstallmentStatus
from utils.date_utils import parse_date

STICKY_STATUSES = (InstallmentStatus.PAID.value, InstallmentStatus.MODIFIED.value)


def resolve_status(due_date, previous_status: Optional[str] = None, today: Optional[date] = None) -> str:
    """Classify an installment by its due date.

    paid/modified are set by explicit action and are returned unchanged.
    Otherwise: due before today -> paid (assumed settled), after today ->
    upcoming, today -> pending.
    """
    if previous_status in STICKY_STATUSES:
        return previous_status
    today = today or date.today()
    due = parse_date(due_date)
    if due < today:
        return InstallmentStatus.PAID.value
    if due > today:
        return InstallmentStatus.UPCOMING.value
    return InstallmentStatus.PENDING.value


def refresh_statuses(schedule: pd.DataFrame, today: Optional[date] = None) -> pd.DataFrame:
    """Re-apply resolve_status to every row; returns a new frame"""
    df = schedule.copy()
    if df.empty:
        return df
    today = today or date.today()
    df["status"] = [
        resolve_status(due, status, today)
        for due, status in zip(df["due_date"], df["status"])
    ]
    return df
