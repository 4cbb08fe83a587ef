"""Prepayment: reduce the balance after an installment and re-amortize what follows"""
import logging

import pandas as pd

from config.constants import SCHEDULE_COLUMNS, InstallmentStatus
from core.calculator import calc_tenure_for_emi, compute_emi
from core.exceptions import InvalidArgumentError
from core.reamortization import (
    ModificationResult, find_row, open_mask, prepare_schedule, reamortize, row_annual_rate,
)
from data_manager.schema import Loan
from utils.date_utils import get_due_date, parse_date, to_iso
from utils.id_generator import emi_id
from utils.money import round_money

logger = logging.getLogger(__name__)


def _remaining_interest(schedule: pd.DataFrame, mask: pd.Series) -> float:
    return round_money(schedule.loc[mask, "interest"].sum())


def _extend_schedule(df: pd.DataFrame, loan: Loan, through: int) -> pd.DataFrame:
    """Append regular installments up to `through`, due monthly after the last one.

    New rows carry the last installment's rate tag; their amounts are filled by
    re-amortization.
    """
    regular = df[~df["is_adjustment"]]
    last = regular.iloc[-1]
    last_number = int(last["emi_number"])
    if through <= last_number:
        return df
    last_due = parse_date(last["due_date"])
    emi_day = loan.effective_emi_start_date.day
    rows = [{
        "emi_id": emi_id(loan.loan_id, n),
        "loan_id": loan.loan_id,
        "emi_number": n,
        "due_date": to_iso(get_due_date(last_due, n - last_number, emi_day)),
        "principal": 0.0,
        "interest": 0.0,
        "total": 0.0,
        "outstanding_principal": 0.0,
        "status": InstallmentStatus.UPCOMING.value,
        "modified_interest_rate": last["modified_interest_rate"],
        "is_adjustment": False,
    } for n in range(last_number + 1, through + 1)]
    logger.debug("Extended loan %s schedule with EMIs %s..%s", loan.loan_id, last_number + 1, through)
    return prepare_schedule(pd.concat([df, pd.DataFrame(rows, columns=SCHEDULE_COLUMNS)], ignore_index=True))


def apply_prepayment(
    loan: Loan,
    schedule: pd.DataFrame,
    amount: float,
    at_emi_number: int,
    reduce_tenure: bool = False,
) -> ModificationResult:
    """
    Apply a prepayment made with installment `at_emi_number`.

    The pivot installment keeps its own principal/interest; only its closing
    balance drops by `amount`. Every later open installment is re-amortized:
    with reduce_tenure the EMI stays and the tenure is re-solved (open rows past
    the new tenure are dropped, missing ones appended), otherwise the tenure stays and a lower EMI is solved.

    Returns ModificationResult(updated loan, full updated schedule, impact summary)
    """
    if amount is None or amount <= 0:
        raise InvalidArgumentError("Prepayment amount must be greater than 0")

    df = prepare_schedule(schedule)
    pivot = find_row(df, at_emi_number)

    balance_before = float(df.at[pivot, "outstanding_principal"])
    new_outstanding = max(0.0, round_money(balance_before - amount))
    pivot_rate = row_annual_rate(df, pivot, loan)

    affected = (df["emi_number"] > at_emi_number) & open_mask(df)
    old_interest = _remaining_interest(df, affected)
    old_emi = loan.emi_amount
    old_tenure = loan.tenure_months

    if not affected.any():
        df.at[pivot, "outstanding_principal"] = new_outstanding
        logger.debug("Prepayment at EMI %s of loan %s touched no later installments", at_emi_number, loan.loan_id)
        return ModificationResult(loan, df, {
            "remaining_principal_before": round_money(balance_before),
            "remaining_principal_after": new_outstanding,
            "old_emi_amount": old_emi,
            "new_emi_amount": old_emi,
            "old_tenure_months": old_tenure,
            "new_tenure_months": old_tenure,
            "installments_recomputed": 0,
            "interest_saved": 0.0,
        })

    if reduce_tenure:
        extra_months = calc_tenure_for_emi(new_outstanding, pivot_rate, loan.emi_amount)
        updated_loan = loan.with_updates(tenure_months=at_emi_number + extra_months)
        beyond = affected & (df["emi_number"] > updated_loan.tenure_months)
        if beyond.any():
            df = df[~beyond].reset_index(drop=True)
        else:
            df = _extend_schedule(df, loan, updated_loan.tenure_months)
        affected = (df["emi_number"] > at_emi_number) & open_mask(df)
    else:
        remaining_months = int(affected.sum())
        updated_loan = loan.with_updates(
            emi_amount=compute_emi(new_outstanding, pivot_rate, remaining_months),
        )

    pivot = find_row(df, at_emi_number)
    df.at[pivot, "outstanding_principal"] = new_outstanding
    reamortize(
        df, df.index[affected.to_numpy()], new_outstanding, updated_loan.emi_amount,
        lambda label: row_annual_rate(df, label, loan),
    )

    new_interest = _remaining_interest(df, affected)
    summary = {
        "remaining_principal_before": round_money(balance_before),
        "remaining_principal_after": new_outstanding,
        "old_emi_amount": old_emi,
        "new_emi_amount": updated_loan.emi_amount,
        "old_tenure_months": old_tenure,
        "new_tenure_months": updated_loan.tenure_months,
        "installments_recomputed": int(affected.sum()),
        "interest_saved": round_money(old_interest - new_interest),
    }
    logger.debug("Prepayment of %.2f at EMI %s on loan %s: %s", amount, at_emi_number, loan.loan_id, summary)
    return ModificationResult(updated_loan, df, summary)
