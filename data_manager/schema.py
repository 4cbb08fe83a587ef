import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import ClassVar, Optional, Tuple, Union

from config.constants import LoanCategory, ModificationKind
from utils.date_utils import parse_date


@dataclass(frozen=True)
class Loan:
    loan_id: str
    name: str
    category: str  # home / car / education / personal / other
    principal: float
    annual_interest_rate: float  # percent, 0-100
    tenure_months: int
    loan_start_date: date
    emi_amount: float
    emi_start_date: Optional[date] = None  # None for legacy records
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def effective_emi_start_date(self) -> date:
        return self.emi_start_date or self.loan_start_date

    def with_updates(self, **changes) -> "Loan":
        return replace(self, **changes)


@dataclass(frozen=True)
class PrepaymentRecord:
    modification_id: str
    loan_id: str
    date: date
    amount: float
    affected_emis: Tuple[int, ...]
    reduce_tenure: bool = False

    kind: ClassVar[ModificationKind] = ModificationKind.PREPAYMENT


@dataclass(frozen=True)
class StepUpRecord:
    modification_id: str
    loan_id: str
    date: date
    affected_emis: Tuple[int, ...]
    amount: Optional[float] = None
    percentage: Optional[float] = None

    kind: ClassVar[ModificationKind] = ModificationKind.STEPUP


@dataclass(frozen=True)
class InterestChangeRecord:
    modification_id: str
    loan_id: str
    date: date
    new_interest_rate: float
    affected_emis: Tuple[int, ...] = field(default_factory=tuple)

    kind: ClassVar[ModificationKind] = ModificationKind.INTEREST_CHANGE


ModificationRecord = Union[PrepaymentRecord, StepUpRecord, InterestChangeRecord]


# ---- Flat record conversion (used by the repositories) ----

def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _optional_float(value) -> Optional[float]:
    return None if _blank(value) else float(value)


def _parse_datetime(value) -> Optional[datetime]:
    if _blank(value):
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def loan_to_record(loan: Loan) -> dict:
    return {
        "loan_id": loan.loan_id,
        "name": loan.name,
        "category": loan.category,
        "principal": loan.principal,
        "annual_interest_rate": loan.annual_interest_rate,
        "tenure_months": loan.tenure_months,
        "loan_start_date": loan.loan_start_date.isoformat(),
        "emi_start_date": loan.emi_start_date.isoformat() if loan.emi_start_date else None,
        "emi_amount": loan.emi_amount,
        "created_at": loan.created_at.isoformat() if loan.created_at else None,
        "updated_at": loan.updated_at.isoformat() if loan.updated_at else None,
    }


def loan_from_record(record: dict) -> Loan:
    category = record.get("category") or LoanCategory.OTHER.value
    return Loan(
        loan_id=str(record["loan_id"]),
        name=str(record["name"]),
        category=LoanCategory(category).value,
        principal=float(record["principal"]),
        annual_interest_rate=float(record["annual_interest_rate"]),
        tenure_months=int(record["tenure_months"]),
        loan_start_date=parse_date(record["loan_start_date"]),
        emi_start_date=None if _blank(record.get("emi_start_date")) else parse_date(record["emi_start_date"]),
        emi_amount=float(record["emi_amount"]),
        created_at=_parse_datetime(record.get("created_at")),
        updated_at=_parse_datetime(record.get("updated_at")),
    )


def _encode_emis(emis: Tuple[int, ...]) -> str:
    return ",".join(str(n) for n in emis)


def _decode_emis(value) -> Tuple[int, ...]:
    if _blank(value):
        return ()
    if isinstance(value, (int, float)):
        return (int(value),)
    return tuple(int(part) for part in str(value).split(",") if part.strip())


def modification_to_record(mod: ModificationRecord) -> dict:
    record = {
        "modification_id": mod.modification_id,
        "loan_id": mod.loan_id,
        "kind": mod.kind.value,
        "date": mod.date.isoformat(),
        "amount": None,
        "percentage": None,
        "new_interest_rate": None,
        "reduce_tenure": None,
        "affected_emis": _encode_emis(mod.affected_emis),
    }
    if isinstance(mod, PrepaymentRecord):
        record["amount"] = mod.amount
        record["reduce_tenure"] = mod.reduce_tenure
    elif isinstance(mod, StepUpRecord):
        record["amount"] = mod.amount
        record["percentage"] = mod.percentage
    else:
        record["new_interest_rate"] = mod.new_interest_rate
    return record


def modification_from_record(record: dict) -> ModificationRecord:
    kind = ModificationKind(record["kind"])
    common = {
        "modification_id": str(record["modification_id"]),
        "loan_id": str(record["loan_id"]),
        "date": parse_date(record["date"]),
        "affected_emis": _decode_emis(record.get("affected_emis")),
    }
    if kind == ModificationKind.PREPAYMENT:
        reduce_tenure = record.get("reduce_tenure")
        return PrepaymentRecord(
            amount=float(record["amount"]),
            reduce_tenure=False if _blank(reduce_tenure) else bool(reduce_tenure),
            **common,
        )
    if kind == ModificationKind.STEPUP:
        return StepUpRecord(
            amount=_optional_float(record.get("amount")),
            percentage=_optional_float(record.get("percentage")),
            **common,
        )
    return InterestChangeRecord(new_interest_rate=float(record["new_interest_rate"]), **common)
