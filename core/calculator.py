"""Core calculations: EMI, per-installment amortization step, tenure solve, IRR"""
import math
from typing import List, NamedTuple

import numpy as np
from scipy import optimize

from core.exceptions import ArithmeticDegenerateError
from utils.money import monthly_rate, round_money

# One cent of rounding per installment
ROUNDING_STEP = 0.01


class AmortizedRow(NamedTuple):
    principal: float
    interest: float
    total: float
    outstanding: float


def compute_emi(principal: float, annual_rate: float, tenure_months: int) -> float:
    """Standard annuity EMI: P * r * (1+r)^n / ((1+r)^n - 1), rounded to currency"""
    if tenure_months == 0:
        return 0.0
    r = monthly_rate(annual_rate)
    if r == 0:
        return round_money(principal / tenure_months)
    growth = (1 + r) ** tenure_months
    return round_money(principal * r * growth / (growth - 1))


def amortize_row(
    outstanding: float,
    rate: float,
    emi_amount: float,
    settle_within: float = 0.0,
) -> AmortizedRow:
    """One installment from the balance owed before it.

    `rate` is the monthly decimal rate. A balance left over of at most
    `settle_within` is rounding residue and is cleared by this row; anything
    larger stays outstanding.
    """
    interest = round_money(outstanding * rate)
    principal = min(round_money(emi_amount - interest), outstanding)
    if 0 < round_money(outstanding - principal) <= settle_within:
        principal = round_money(outstanding)
    total = round_money(principal + interest)
    remaining = max(0.0, round_money(outstanding - principal))
    return AmortizedRow(principal, interest, total, remaining)


def rounding_allowance(allowance: float, rate: float) -> float:
    """Largest balance drift cent rounding can build up, carried one more row at monthly `rate`"""
    return allowance * (1 + rate) + ROUNDING_STEP


def calc_tenure_for_emi(outstanding: float, annual_rate: float, emi_amount: float) -> int:
    """Installments needed to clear `outstanding` at a fixed EMI.

    n = ceil(-ln(1 - P*r/M) / ln(1+r)); straight-line ceil(P/M) when r == 0.
    """
    if outstanding <= 0:
        return 0
    if emi_amount <= 0:
        raise ArithmeticDegenerateError("EMI amount must be positive to solve for tenure")
    r = monthly_rate(annual_rate)
    if r == 0:
        return math.ceil(outstanding / emi_amount)
    ratio = outstanding * r / emi_amount
    if ratio >= 1:
        raise ArithmeticDegenerateError(
            f"EMI {emi_amount:.2f} does not cover the monthly interest on {outstanding:.2f}; "
            "the loan cannot be repaid at this EMI"
        )
    return math.ceil(-math.log(1 - ratio) / math.log(1 + r))


def calc_irr(principal: float, payments: List[float]) -> float:
    """Effective annual rate (%) implied by a disbursement and monthly payments"""
    cash_flows = np.array([-principal] + list(payments), dtype=float)
    if len(cash_flows) < 2 or principal <= 0:
        return 0.0
    periods = np.arange(len(cash_flows))

    def npv(rate):
        return float(np.sum(cash_flows / (1 + rate) ** periods))

    try:
        monthly_irr = optimize.brentq(npv, -0.5, 1.0)
    except (ValueError, RuntimeError):
        return 0.0
    annual_irr = (1 + monthly_irr) ** 12 - 1
    return round(annual_irr * 100, 4)
