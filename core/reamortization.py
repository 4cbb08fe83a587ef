"""Shared helpers for recomputing a suffix of an existing schedule"""
import logging
from typing import Callable, Dict, Iterable, NamedTuple, Optional

import pandas as pd

from config.constants import OPEN_STATUSES, SCHEDULE_COLUMNS
from core.calculator import amortize_row, rounding_allowance
from core.exceptions import NotFoundError
from data_manager.schema import Loan
from utils.money import monthly_rate

logger = logging.getLogger(__name__)

MONEY_COLUMNS = ["principal", "interest", "total", "outstanding_principal"]


class ModificationResult(NamedTuple):
    loan: Loan
    schedule: pd.DataFrame
    summary: Dict


def prepare_schedule(schedule: pd.DataFrame) -> pd.DataFrame:
    """Copy, order by emi_number and normalise dtypes so rows can be rewritten"""
    df = schedule.copy()
    for col in SCHEDULE_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[SCHEDULE_COLUMNS].sort_values("emi_number", kind="stable").reset_index(drop=True)
    df["emi_number"] = df["emi_number"].astype(int)
    df[MONEY_COLUMNS] = df[MONEY_COLUMNS].astype(float)
    df["modified_interest_rate"] = pd.to_numeric(df["modified_interest_rate"], errors="coerce").astype(float)
    df["is_adjustment"] = df["is_adjustment"].fillna(False).astype(bool)
    return df


def open_mask(schedule: pd.DataFrame) -> pd.Series:
    """Rows not yet settled (pending or upcoming)"""
    return schedule["status"].isin(OPEN_STATUSES)


def find_row(schedule: pd.DataFrame, emi_number: int) -> int:
    """Index label of the row with this emi_number"""
    match = schedule.index[schedule["emi_number"] == emi_number]
    if len(match) == 0:
        raise NotFoundError(f"EMI number {emi_number} not found")
    return int(match[0])


def balance_before(schedule: pd.DataFrame, emi_number: int, loan: Loan) -> float:
    """Outstanding after the immediately preceding row, or the loan principal"""
    before = schedule[schedule["emi_number"] < emi_number]
    if before.empty:
        return float(loan.principal)
    return float(before.iloc[-1]["outstanding_principal"])


def row_annual_rate(schedule: pd.DataFrame, label: int, loan: Loan) -> float:
    """Rate in effect for a row: its recorded override, else the loan rate"""
    override = schedule.at[label, "modified_interest_rate"]
    if pd.isna(override):
        return float(loan.annual_interest_rate)
    return float(override)


def reamortize(
    schedule: pd.DataFrame,
    labels: Iterable[int],
    opening_balance: float,
    emi_amount: float,
    annual_rate_for: Callable[[int], float],
    tag_rate: Optional[float] = None,
) -> float:
    """Rewrite rows `labels` (ascending) in place, carrying the balance forward.

    When the schedule's final row is among them it clears the balance left
    only if that is cent-rounding residue; a real shortfall stays outstanding.
    Returns the closing balance.
    """
    labels = list(labels)
    if not labels:
        return opening_balance
    last_label = schedule.index[-1]
    outstanding = opening_balance
    allowance = 0.0
    for label in labels:
        rate = monthly_rate(annual_rate_for(label))
        allowance = rounding_allowance(allowance, rate)
        row = amortize_row(outstanding, rate, emi_amount, allowance if label == last_label else 0.0)
        schedule.loc[label, MONEY_COLUMNS] = [row.principal, row.interest, row.total, row.outstanding]
        if tag_rate is not None:
            schedule.at[label, "modified_interest_rate"] = float(tag_rate)
        outstanding = row.outstanding
    logger.debug(
        "Re-amortized EMIs %s..%s from %.2f at EMI %.2f, closing %.2f",
        schedule.at[labels[0], "emi_number"], schedule.at[labels[-1], "emi_number"],
        opening_balance, emi_amount, outstanding,
    )
    return outstanding
