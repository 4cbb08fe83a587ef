from enum import Enum


class LoanCategory(str, Enum):
    HOME = "home"
    CAR = "car"
    EDUCATION = "education"
    PERSONAL = "personal"
    OTHER = "other"

    @property
    def label(self) -> str:
        return {
            "home": "Home Loan",
            "car": "Car Loan",
            "education": "Education Loan",
            "personal": "Personal Loan",
            "other": "Other",
        }[self.value]


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    UPCOMING = "upcoming"
    PAID = "paid"
    MODIFIED = "modified"

    @property
    def is_open(self) -> bool:
        """Not yet settled, so the modification engine may recompute it"""
        return self in (InstallmentStatus.PENDING, InstallmentStatus.UPCOMING)


class ModificationKind(str, Enum):
    PREPAYMENT = "prepayment"
    STEPUP = "stepup"
    INTEREST_CHANGE = "interest_change"

    @property
    def label(self) -> str:
        return {
            "prepayment": "Prepayment",
            "stepup": "EMI Step-up",
            "interest_change": "Interest Rate Change",
        }[self.value]


OPEN_STATUSES = [s.value for s in InstallmentStatus if s.is_open]

# Sheet names
SHEET_LOANS = "loans"
SHEET_EMI_SCHEDULES = "emi_schedules"
SHEET_MODIFICATIONS = "modifications"

# Column definitions
LOANS_COLUMNS = [
    "loan_id", "name", "category", "principal", "annual_interest_rate",
    "tenure_months", "loan_start_date", "emi_start_date", "emi_amount",
    "created_at", "updated_at",
]

SCHEDULE_COLUMNS = [
    "emi_id", "loan_id", "emi_number", "due_date",
    "principal", "interest", "total", "outstanding_principal",
    "status", "modified_interest_rate", "is_adjustment",
]

MODIFICATIONS_COLUMNS = [
    "modification_id", "loan_id", "kind", "date", "amount",
    "percentage", "new_interest_rate", "reduce_tenure", "affected_emis",
]

# CSV export
CSV_HEADERS = [
    "EMI #", "Due Date", "Principal", "Interest", "Total",
    "Outstanding Principal", "Status",
]
ADJUSTMENT_LABEL = "Adjustment"

ADJUSTMENT_EMI_NUMBER = 0
