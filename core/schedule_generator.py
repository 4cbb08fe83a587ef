"""
EMI schedule generator

Builds the full ordered installment sequence of a loan from its terms, including
the partial first "adjustment" period between disbursement and the first regular
EMI. Interest-rate changes recorded as modifications are replayed; prepayments and
step-ups are one-way edits on the live schedule and are not replayed here.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from config.constants import ADJUSTMENT_EMI_NUMBER, SCHEDULE_COLUMNS
from core.calculator import AmortizedRow, amortize_row, rounding_allowance
from core.status import resolve_status
from data_manager.schema import InterestChangeRecord, Loan, ModificationRecord
from utils.date_utils import add_months, days_in_month, get_due_date, to_iso
from utils.id_generator import emi_id
from utils.money import monthly_rate, round_money

logger = logging.getLogger(__name__)


def needs_adjustment(loan: Loan) -> bool:
    """A partial first period exists when the EMI start date differs from disbursement"""
    return loan.emi_start_date is not None and loan.emi_start_date != loan.loan_start_date


def _installment(
    loan: Loan,
    emi_number: int,
    due: date,
    row: AmortizedRow,
    today: Optional[date],
    modified_rate: Optional[float] = None,
    is_adjustment: bool = False,
) -> dict:
    return {
        "emi_id": emi_id(loan.loan_id, emi_number, is_adjustment),
        "loan_id": loan.loan_id,
        "emi_number": emi_number,
        "due_date": to_iso(due),
        "principal": row.principal,
        "interest": row.interest,
        "total": row.total,
        "outstanding_principal": row.outstanding,
        "status": resolve_status(due, None, today),
        "modified_interest_rate": modified_rate,
        "is_adjustment": is_adjustment,
    }


def _adjustment_row(loan: Loan, outstanding: float, today: Optional[date]) -> Tuple[dict, float]:
    """Partial-period installment due on the disbursement date (30/N proration)"""
    start = loan.loan_start_date
    month_days = days_in_month(start)
    ratio = (month_days - start.day + 1) / month_days

    partial_interest = round_money(outstanding * monthly_rate(loan.annual_interest_rate) * ratio)
    payment = round_money(loan.emi_amount * ratio)
    principal = min(max(0.0, round_money(payment - partial_interest)), outstanding)
    remaining = max(0.0, round_money(outstanding - principal))

    row = AmortizedRow(principal, partial_interest, round_money(principal + partial_interest), remaining)
    record = _installment(loan, ADJUSTMENT_EMI_NUMBER, start, row, today, is_adjustment=True)
    return record, remaining


def _rate_override(
    emi_number: int,
    due: date,
    rate_changes: List[InterestChangeRecord],
) -> Optional[InterestChangeRecord]:
    """First rate change (by date) that names this EMI or took effect on/before its due date"""
    for change in rate_changes:
        if emi_number in change.affected_emis or change.date <= due:
            return change
    return None


def generate_schedule(
    loan: Loan,
    modifications: Optional[Iterable[ModificationRecord]] = None,
    today: Optional[date] = None,
) -> pd.DataFrame:
    """Generate the complete EMI schedule of a loan.

    Args:
        loan: loan terms; emi_amount is used as-is
        modifications: audit records; only interest changes are replayed
        today: reference date for status resolution (defaults to date.today())

    Returns:
        DataFrame with SCHEDULE_COLUMNS ordered by emi_number
    """
    rate_changes = sorted(
        (m for m in modifications or [] if isinstance(m, InterestChangeRecord)),
        key=lambda m: m.date,
    )
    base_rate = monthly_rate(loan.annual_interest_rate)
    outstanding = float(loan.principal)
    records = []
    allowance = 0.0

    emi_start = loan.effective_emi_start_date
    if needs_adjustment(loan):
        record, outstanding = _adjustment_row(loan, outstanding, today)
        records.append(record)
        first_month = add_months(loan.loan_start_date.replace(day=1), 1)
    else:
        first_month = emi_start.replace(day=1)

    for i in range(loan.tenure_months):
        emi_number = i + 1
        due = get_due_date(first_month, i, emi_start.day)

        change = _rate_override(emi_number, due, rate_changes)
        rate = monthly_rate(change.new_interest_rate) if change else base_rate

        # Final installment clears the rounding residue, not a shortfall
        allowance = rounding_allowance(allowance, rate)
        settle_within = allowance if emi_number == loan.tenure_months else 0.0
        row = amortize_row(outstanding, rate, loan.emi_amount, settle_within)
        outstanding = row.outstanding

        records.append(_installment(
            loan, emi_number, due, row, today,
            modified_rate=change.new_interest_rate if change else None,
        ))

    logger.debug(
        "Generated %d installments for loan %s (adjustment=%s, rate changes=%d)",
        len(records), loan.loan_id, needs_adjustment(loan), len(rate_changes),
    )
    schedule = pd.DataFrame(records, columns=SCHEDULE_COLUMNS)
    schedule["modified_interest_rate"] = schedule["modified_interest_rate"].astype(float)
    return schedule
