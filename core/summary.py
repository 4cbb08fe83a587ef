"""Loan-level figures derived from a schedule"""
from typing import Dict

import pandas as pd

from config.constants import InstallmentStatus
from core.calculator import calc_irr
from core.reamortization import open_mask
from data_manager.schema import Loan
from utils.money import round_money


def summarize_schedule(loan: Loan, schedule: pd.DataFrame) -> Dict:
    """
    Totals, progress and effective annual rate of a loan's schedule.

    outstanding_principal is the balance after the last settled installment
    (the loan principal when nothing is settled yet).
    """
    if schedule.empty:
        return {
            "emi_amount": loan.emi_amount,
            "total_interest": 0.0,
            "total_payment": 0.0,
            "outstanding_principal": round_money(loan.principal),
            "paid_installments": 0,
            "remaining_installments": 0,
            "remaining_interest": 0.0,
            "effective_annual_rate": 0.0,
        }

    sch = schedule.sort_values("emi_number")
    settled = sch["status"] == InstallmentStatus.PAID.value
    remaining = open_mask(sch)

    if settled.any():
        outstanding = float(sch.loc[settled, "outstanding_principal"].iloc[-1])
    else:
        outstanding = float(loan.principal)

    return {
        "emi_amount": loan.emi_amount,
        "total_interest": round_money(sch["interest"].sum()),
        "total_payment": round_money(sch["total"].sum()),
        "outstanding_principal": round_money(outstanding),
        "paid_installments": int(settled.sum()),
        "remaining_installments": int(remaining.sum()),
        "remaining_interest": round_money(sch.loc[remaining, "interest"].sum()),
        "effective_annual_rate": calc_irr(loan.principal, sch["total"].astype(float).tolist()),
    }
