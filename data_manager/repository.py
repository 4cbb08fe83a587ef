"""Storage interface for loans, their schedules and modification records"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import pandas as pd

from config.constants import SCHEDULE_COLUMNS
from data_manager.schema import Loan, ModificationRecord


class LoanRepository(ABC):
    """All operations are keyed by loan id; schedules are full-replacement snapshots"""

    @abstractmethod
    def list_loans(self) -> List[Loan]:
        """All stored loans"""

    @abstractmethod
    def get_loan(self, loan_id: str) -> Optional[Loan]:
        """A loan, or None"""

    @abstractmethod
    def save_loan(self, loan: Loan) -> None:
        """Insert or replace a loan"""

    @abstractmethod
    def delete_loan(self, loan_id: str) -> None:
        """Delete a loan together with its schedule and modifications"""

    @abstractmethod
    def get_schedule(self, loan_id: str) -> pd.DataFrame:
        """The loan's installments ordered by emi_number (empty frame if none)"""

    @abstractmethod
    def save_schedule(self, loan_id: str, schedule: pd.DataFrame) -> None:
        """Replace the loan's installments with `schedule`"""

    @abstractmethod
    def get_modifications(self, loan_id: str) -> List[ModificationRecord]:
        """Modification records of a loan in insertion order"""

    @abstractmethod
    def add_modification(self, modification: ModificationRecord) -> None:
        """Append a modification record"""

    def delete_schedule(self, loan_id: str) -> None:
        self.save_schedule(loan_id, pd.DataFrame(columns=SCHEDULE_COLUMNS))

    def update_installments(self, loan_id: str, rows: pd.DataFrame) -> None:
        """Upsert individual installments keyed by emi_number"""
        if rows.empty:
            return
        current = self.get_schedule(loan_id)
        kept = current[~current["emi_number"].isin(rows["emi_number"])]
        merged = pd.concat([kept, rows[SCHEDULE_COLUMNS]], ignore_index=True)
        self.save_schedule(loan_id, merged.sort_values("emi_number").reset_index(drop=True))


class InMemoryLoanRepository(LoanRepository):
    """Dict-backed repository for tests and scripting"""

    def __init__(self):
        self._loans: Dict[str, Loan] = {}
        self._schedules: Dict[str, pd.DataFrame] = {}
        self._modifications: Dict[str, List[ModificationRecord]] = {}

    def list_loans(self) -> List[Loan]:
        return list(self._loans.values())

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        return self._loans.get(loan_id)

    def save_loan(self, loan: Loan) -> None:
        self._loans[loan.loan_id] = loan

    def delete_loan(self, loan_id: str) -> None:
        self._loans.pop(loan_id, None)
        self._schedules.pop(loan_id, None)
        self._modifications.pop(loan_id, None)

    def get_schedule(self, loan_id: str) -> pd.DataFrame:
        schedule = self._schedules.get(loan_id)
        if schedule is None:
            return pd.DataFrame(columns=SCHEDULE_COLUMNS)
        return schedule.copy()

    def save_schedule(self, loan_id: str, schedule: pd.DataFrame) -> None:
        df = schedule[SCHEDULE_COLUMNS].sort_values("emi_number").reset_index(drop=True)
        self._schedules[loan_id] = df.copy()

    def get_modifications(self, loan_id: str) -> List[ModificationRecord]:
        return list(self._modifications.get(loan_id, []))

    def add_modification(self, modification: ModificationRecord) -> None:
        self._modifications.setdefault(modification.loan_id, []).append(modification)
