from datetime import date
from typing import Iterable, Optional, Tuple, Union

from config.constants import LoanCategory
from config.settings import MAX_INTEREST_RATE


def validate_loan(
    name: str,
    category: str,
    principal: float,
    annual_interest_rate: float,
    tenure_months: int,
    loan_start_date: Optional[date],
    emi_start_date: Optional[date] = None,
) -> Tuple[bool, str]:
    """Validate loan input, returns (ok, error message)"""
    if not name or not name.strip():
        return False, "Loan name is required"

    if category not in [e.value for e in LoanCategory]:
        return False, f"Invalid loan category: {category}"

    if principal is None or principal <= 0:
        return False, "Principal must be greater than 0"

    if annual_interest_rate is None or not 0 <= annual_interest_rate <= MAX_INTEREST_RATE:
        return False, f"Interest rate must be between 0 and {MAX_INTEREST_RATE:g}%"

    if tenure_months is None or tenure_months < 1:
        return False, "Tenure must be at least 1 month"

    if loan_start_date is None:
        return False, "Loan start date is required"

    if emi_start_date is not None and emi_start_date.replace(day=1) < loan_start_date.replace(day=1):
        return False, "EMI start date cannot be before the loan start month"

    return True, ""


def validate_prepayment(amount: float, emi_number: int) -> Tuple[bool, str]:
    if amount is None or amount <= 0:
        return False, "Amount must be greater than 0"

    if emi_number is None or emi_number < 1:
        return False, "EMI number must be at least 1"

    return True, ""


def validate_step_up(
    amount: Optional[float],
    percentage: Optional[float],
    from_emi_number: int,
) -> Tuple[bool, str]:
    if (amount is None) == (percentage is None):
        return False, "Provide either a step-up amount or a step-up percentage"

    value = amount if amount is not None else percentage
    if value <= 0:
        return False, "Step-up value must be greater than 0"

    if from_emi_number is None or from_emi_number < 1:
        return False, "EMI number must be at least 1"

    return True, ""


def validate_rate_change(
    new_rate: float,
    affected: Union[str, Iterable[int]],
) -> Tuple[bool, str]:
    if new_rate is None or not 0 <= new_rate <= MAX_INTEREST_RATE:
        return False, f"Interest rate must be between 0 and {MAX_INTEREST_RATE:g}%"

    if not isinstance(affected, str) and not list(affected):
        return False, "Select at least one EMI"

    return True, ""
