"""EMI step-up: raise the EMI from an installment onward"""
import logging
from typing import Optional

import pandas as pd

from core.exceptions import InvalidArgumentError
from core.reamortization import (
    ModificationResult, balance_before, open_mask, prepare_schedule, reamortize, row_annual_rate,
)
from data_manager.schema import Loan
from utils.money import round_money

logger = logging.getLogger(__name__)


def stepped_up_emi(current_emi: float, amount: Optional[float], percentage: Optional[float]) -> float:
    """New EMI from exactly one of a flat increase or a percentage increase"""
    if (amount is None) == (percentage is None):
        raise InvalidArgumentError("Provide exactly one of step-up amount or step-up percentage")
    if amount is not None:
        if amount <= 0:
            raise InvalidArgumentError("Step-up amount must be greater than 0")
        return round_money(current_emi + amount)
    if percentage <= 0:
        raise InvalidArgumentError("Step-up percentage must be greater than 0")
    return round_money(current_emi * (1 + percentage / 100))


def apply_step_up(
    loan: Loan,
    schedule: pd.DataFrame,
    amount: Optional[float],
    percentage: Optional[float],
    from_emi_number: int,
) -> ModificationResult:
    """
    Raise the EMI and re-amortize every open installment from `from_emi_number`.

    The balance carried into the first affected row is the closing balance of
    the installment just before it (the loan principal when there is none).
    """
    new_emi = stepped_up_emi(loan.emi_amount, amount, percentage)
    updated_loan = loan.with_updates(emi_amount=new_emi)

    df = prepare_schedule(schedule)
    affected = (df["emi_number"] >= from_emi_number) & open_mask(df)
    old_interest = round_money(df.loc[affected, "interest"].sum())
    opening = balance_before(df, from_emi_number, loan)

    reamortize(
        df, df.index[affected.to_numpy()], opening, new_emi,
        lambda label: row_annual_rate(df, label, loan),
    )

    new_interest = round_money(df.loc[affected, "interest"].sum())
    summary = {
        "old_emi_amount": loan.emi_amount,
        "new_emi_amount": new_emi,
        "opening_balance": round_money(opening),
        "installments_recomputed": int(affected.sum()),
        "interest_saved": round_money(old_interest - new_interest),
    }
    logger.debug("Step-up on loan %s from EMI %s: %s", loan.loan_id, from_emi_number, summary)
    return ModificationResult(updated_loan, df, summary)
