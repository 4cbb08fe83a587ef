"""
Loan service: persistence-aware orchestration around the amortization engine.

Each operation loads a complete snapshot of the loan and its installments from
the injected repository, runs a pure engine function, then persists the result
and appends the modification record. Mutations of one loan are serialized by a
per-loan lock.
"""
import logging
import threading
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from config.constants import InstallmentStatus, LoanCategory
from core.calculator import compute_emi
from core.due_dates import shift_due_dates
from core.exceptions import EMITrackerError, InvalidArgumentError, NotFoundError
from core.prepayment import apply_prepayment
from core.rate_adjustment import ALL_PENDING, change_interest_rate, nominated_emis
from core.reamortization import ModificationResult, find_row, open_mask, prepare_schedule
from core.schedule_generator import generate_schedule
from core.status import refresh_statuses
from core.step_up import apply_step_up
from core.summary import summarize_schedule
from data_manager.csv_export import schedule_to_csv
from data_manager.data_validator import (
    validate_loan, validate_prepayment, validate_rate_change, validate_step_up,
)
from data_manager.repository import LoanRepository
from data_manager.schema import (
    InterestChangeRecord, Loan, ModificationRecord, PrepaymentRecord, StepUpRecord,
)
from utils.id_generator import generate_loan_id, generate_modification_id

logger = logging.getLogger(__name__)

TERM_FIELDS = ("principal", "annual_interest_rate", "tenure_months")


class LoanService:
    def __init__(self, repository: LoanRepository, today: Optional[date] = None):
        self.repository = repository
        self._today = today
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)

    @property
    def today(self) -> date:
        return self._today or date.today()

    def _lock(self, loan_id: str) -> threading.Lock:
        return self._locks[loan_id]

    # ---- Loans ----

    def list_loans(self) -> List[Loan]:
        return self.repository.list_loans()

    def get_loan(self, loan_id: str) -> Loan:
        loan = self.repository.get_loan(loan_id)
        if loan is None:
            raise NotFoundError(f"Loan {loan_id} not found")
        return loan

    def create_loan(
        self,
        name: str,
        principal: float,
        annual_interest_rate: float,
        tenure_months: int,
        loan_start_date: date,
        emi_start_date: Optional[date] = None,
        category: str = LoanCategory.OTHER.value,
    ) -> Loan:
        ok, msg = validate_loan(
            name, category, principal, annual_interest_rate,
            tenure_months, loan_start_date, emi_start_date,
        )
        if not ok:
            raise InvalidArgumentError(msg)

        now = datetime.now()
        loan = Loan(
            loan_id=generate_loan_id(),
            name=name.strip(),
            category=category,
            principal=float(principal),
            annual_interest_rate=float(annual_interest_rate),
            tenure_months=int(tenure_months),
            loan_start_date=loan_start_date,
            emi_start_date=emi_start_date,
            emi_amount=compute_emi(principal, annual_interest_rate, tenure_months),
            created_at=now,
            updated_at=now,
        )
        self.repository.save_loan(loan)
        logger.info("Created loan %s (%s) with EMI %.2f", loan.loan_id, loan.name, loan.emi_amount)
        return loan

    def update_loan(self, loan_id: str, **updates) -> Loan:
        """Edit loan fields; the EMI is recomputed when principal, rate or tenure change"""
        if "emi_amount" in updates:
            raise InvalidArgumentError("EMI amount is derived and cannot be edited directly")
        with self._lock(loan_id):
            loan = self.get_loan(loan_id)
            updated = loan.with_updates(**updates, updated_at=datetime.now())
            ok, msg = validate_loan(
                updated.name, updated.category, updated.principal, updated.annual_interest_rate,
                updated.tenure_months, updated.loan_start_date, updated.emi_start_date,
            )
            if not ok:
                raise InvalidArgumentError(msg)
            if any(field in updates for field in TERM_FIELDS):
                updated = updated.with_updates(emi_amount=compute_emi(
                    updated.principal, updated.annual_interest_rate, updated.tenure_months,
                ))
            self.repository.save_loan(updated)
        logger.info("Updated loan %s: %s", loan_id, sorted(updates))
        return updated

    def delete_loan(self, loan_id: str) -> None:
        try:
            with self._lock(loan_id):
                self.get_loan(loan_id)
                self.repository.delete_loan(loan_id)
        finally:
            self._locks.pop(loan_id, None)
        logger.info("Deleted loan %s", loan_id)

    # ---- Schedules ----

    def load_schedule(self, loan_id: str) -> pd.DataFrame:
        """Stored schedule with statuses brought up to date; generated on first load"""
        with self._lock(loan_id):
            loan = self.get_loan(loan_id)
            stored = self.repository.get_schedule(loan_id)
            if stored.empty:
                schedule = generate_schedule(loan, self.repository.get_modifications(loan_id), self.today)
                self.repository.save_schedule(loan_id, schedule)
                logger.info("Generated schedule of %d installments for loan %s", len(schedule), loan_id)
                return schedule

            refreshed = refresh_statuses(stored, self.today)
            changed = refreshed[refreshed["status"] != stored["status"]]
            if not changed.empty:
                self.repository.update_installments(loan_id, changed)
                logger.debug("Refreshed status of %d installments for loan %s", len(changed), loan_id)
            return refreshed

    def regenerate_schedule(self, loan_id: str) -> pd.DataFrame:
        """Rebuild from loan terms; only interest changes are replayed"""
        with self._lock(loan_id):
            loan = self.get_loan(loan_id)
            schedule = generate_schedule(loan, self.repository.get_modifications(loan_id), self.today)
            self.repository.delete_schedule(loan_id)
            self.repository.save_schedule(loan_id, schedule)
        logger.info("Regenerated schedule for loan %s", loan_id)
        return schedule

    def mark_as_paid(self, loan_id: str, emi_number: int) -> pd.DataFrame:
        with self._lock(loan_id):
            schedule = prepare_schedule(self.repository.get_schedule(loan_id))
            label = find_row(schedule, emi_number)
            schedule.at[label, "status"] = InstallmentStatus.PAID.value
            self.repository.update_installments(loan_id, schedule.loc[[label]])
        logger.info("Marked EMI %s of loan %s as paid", emi_number, loan_id)
        return schedule

    def update_emi_dates(
        self,
        loan_id: str,
        start_emi_number: int,
        end_emi_number: int,
        new_start_date: date,
    ) -> pd.DataFrame:
        with self._lock(loan_id):
            self.get_loan(loan_id)
            schedule = shift_due_dates(
                self.repository.get_schedule(loan_id), start_emi_number, end_emi_number, new_start_date,
            )
            self.repository.save_schedule(loan_id, schedule)
        logger.info("Moved EMIs %s..%s of loan %s to start %s", start_emi_number, end_emi_number, loan_id, new_start_date)
        return schedule

    # ---- Modifications ----

    def _commit(self, result: ModificationResult, record: ModificationRecord) -> ModificationResult:
        loan = result.loan
        if loan is not None:
            loan = loan.with_updates(updated_at=datetime.now())
            self.repository.save_loan(loan)
        self.repository.save_schedule(record.loan_id, result.schedule)
        self.repository.add_modification(record)
        logger.info(
            "Applied %s to loan %s: %s", record.kind.value, record.loan_id, result.summary,
            extra={"loan_id": record.loan_id},
        )
        return result._replace(loan=loan)

    @staticmethod
    def _check(check, loan_id: str, operation: str):
        ok, msg = check
        if not ok:
            logger.warning("%s rejected for loan %s: %s", operation, loan_id, msg)
            raise InvalidArgumentError(msg)

    def _snapshot(self, loan_id: str):
        loan = self.get_loan(loan_id)
        schedule = self.repository.get_schedule(loan_id)
        if schedule.empty:
            schedule = generate_schedule(loan, self.repository.get_modifications(loan_id), self.today)
        return loan, refresh_statuses(schedule, self.today)

    def apply_prepayment(
        self,
        loan_id: str,
        amount: float,
        emi_number: int,
        reduce_tenure: bool = False,
    ) -> ModificationResult:
        self._check(validate_prepayment(amount, emi_number), loan_id, "Prepayment")
        with self._lock(loan_id):
            loan, schedule = self._snapshot(loan_id)
            try:
                result = apply_prepayment(loan, schedule, amount, emi_number, reduce_tenure)
            except EMITrackerError as err:
                logger.warning("Prepayment rejected for loan %s: %s", loan_id, err)
                raise
            record = PrepaymentRecord(
                modification_id=generate_modification_id(),
                loan_id=loan_id,
                date=self.today,
                amount=float(amount),
                affected_emis=(int(emi_number),),
                reduce_tenure=reduce_tenure,
            )
            return self._commit(result, record)

    def apply_step_up(
        self,
        loan_id: str,
        amount: Optional[float],
        percentage: Optional[float],
        from_emi_number: int,
    ) -> ModificationResult:
        self._check(validate_step_up(amount, percentage, from_emi_number), loan_id, "Step-up")
        with self._lock(loan_id):
            loan, schedule = self._snapshot(loan_id)
            try:
                result = apply_step_up(loan, schedule, amount, percentage, from_emi_number)
            except EMITrackerError as err:
                logger.warning("Step-up rejected for loan %s: %s", loan_id, err)
                raise
            affected = schedule[(schedule["emi_number"] >= from_emi_number) & open_mask(schedule)]
            record = StepUpRecord(
                modification_id=generate_modification_id(),
                loan_id=loan_id,
                date=self.today,
                affected_emis=tuple(sorted(int(n) for n in affected["emi_number"])),
                amount=amount,
                percentage=percentage,
            )
            return self._commit(result, record)

    def change_interest_rate(
        self,
        loan_id: str,
        new_rate: float,
        affected: Union[str, Iterable[int]] = ALL_PENDING,
    ) -> ModificationResult:
        if not isinstance(affected, str):
            affected = list(affected)
        self._check(validate_rate_change(new_rate, affected), loan_id, "Rate change")
        with self._lock(loan_id):
            loan, schedule = self._snapshot(loan_id)
            try:
                result = change_interest_rate(loan, schedule, new_rate, affected)
            except EMITrackerError as err:
                logger.warning("Rate change rejected for loan %s: %s", loan_id, err)
                raise
            record = InterestChangeRecord(
                modification_id=generate_modification_id(),
                loan_id=loan_id,
                date=self.today,
                new_interest_rate=float(new_rate),
                affected_emis=tuple(nominated_emis(prepare_schedule(schedule), affected)),
            )
            return self._commit(result, record)

    # ---- Reporting ----

    def export_csv(self, loan_id: str, year: Optional[int] = None) -> str:
        return schedule_to_csv(self.load_schedule(loan_id), year)

    def summary(self, loan_id: str) -> Dict:
        return summarize_schedule(self.get_loan(loan_id), self.load_schedule(loan_id))
