import sys
from datetime import date
from pathlib import Path

import pytest

# Make the project root importable
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.calculator import compute_emi  # noqa: E402
from data_manager.schema import Loan  # noqa: E402


def build_loan(
    principal: float = 1_000_000,
    rate: float = 8.5,
    tenure: int = 240,
    start: date = date(2025, 1, 5),
    emi_start: date = None,
    loan_id: str = "loan-1",
) -> Loan:
    return Loan(
        loan_id=loan_id,
        name="Test Loan",
        category="home",
        principal=float(principal),
        annual_interest_rate=float(rate),
        tenure_months=tenure,
        loan_start_date=start,
        emi_start_date=emi_start,
        emi_amount=compute_emi(principal, rate, tenure),
    )


@pytest.fixture
def today():
    """Reference date before the first due date of the default loan"""
    return date(2025, 1, 1)


@pytest.fixture
def make_loan():
    return build_loan


@pytest.fixture
def loan():
    """1,000,000 at 8.5% over 240 months from 2025-01-05"""
    return build_loan()
