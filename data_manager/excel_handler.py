import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from config.constants import (
    SHEET_LOANS, SHEET_EMI_SCHEDULES, SHEET_MODIFICATIONS,
    LOANS_COLUMNS, SCHEDULE_COLUMNS, MODIFICATIONS_COLUMNS,
)
from config.settings import BACKUP_KEEP, EXCEL_FILE
from data_manager.repository import LoanRepository
from data_manager.schema import (
    Loan, ModificationRecord,
    loan_from_record, loan_to_record,
    modification_from_record, modification_to_record,
)

logger = logging.getLogger(__name__)

SHEETS = {
    SHEET_LOANS: LOANS_COLUMNS,
    SHEET_EMI_SCHEDULES: SCHEDULE_COLUMNS,
    SHEET_MODIFICATIONS: MODIFICATIONS_COLUMNS,
}


class ExcelLoanRepository(LoanRepository):
    """Workbook-backed repository: one sheet per record type, backup before each write"""

    def __init__(self, filepath: Path = EXCEL_FILE, backup_keep: int = BACKUP_KEEP):
        self.filepath = Path(filepath)
        self.backup_keep = backup_keep
        self.init_excel()

    def init_excel(self):
        """Create the workbook with all sheets and headers if missing"""
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        if self.filepath.exists():
            return

        with pd.ExcelWriter(self.filepath, engine="openpyxl") as writer:
            for sheet_name, columns in SHEETS.items():
                pd.DataFrame(columns=columns).to_excel(writer, sheet_name=sheet_name, index=False)
        logger.info("Created workbook %s", self.filepath)

    def backup_excel(self):
        """Copy the workbook aside before a write, keeping the newest backups"""
        if not self.filepath.exists() or self.backup_keep <= 0:
            return
        ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self.filepath.with_suffix(f".xlsx.bak_{ts}")
        shutil.copy2(self.filepath, backup_path)
        backups = sorted(self.filepath.parent.glob(f"{self.filepath.stem}.xlsx.bak_*"))
        for old in backups[:-self.backup_keep]:
            old.unlink()

    def read_sheet(self, sheet_name: str) -> pd.DataFrame:
        self.init_excel()
        try:
            df = pd.read_excel(self.filepath, sheet_name=sheet_name, engine="openpyxl")
        except ValueError:
            df = pd.DataFrame(columns=SHEETS[sheet_name])
        return df

    def write_sheet(self, df: pd.DataFrame, sheet_name: str):
        """Overwrite one sheet, keeping the others"""
        self.init_excel()
        self.backup_excel()

        with pd.ExcelWriter(self.filepath, engine="openpyxl", mode="a", if_sheet_exists="replace") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)

    @staticmethod
    def _records(df: pd.DataFrame) -> List[dict]:
        return df.astype(object).where(df.notna(), None).to_dict("records")

    # ---- Loans ----

    def list_loans(self) -> List[Loan]:
        df = self.read_sheet(SHEET_LOANS)
        return [loan_from_record(r) for r in self._records(df)]

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        df = self.read_sheet(SHEET_LOANS)
        match = df[df["loan_id"].astype(str) == loan_id]
        if match.empty:
            return None
        return loan_from_record(self._records(match)[0])

    def save_loan(self, loan: Loan) -> None:
        df = self.read_sheet(SHEET_LOANS)
        df = df[df["loan_id"].astype(str) != loan.loan_id]
        df = pd.concat([df, pd.DataFrame([loan_to_record(loan)], columns=LOANS_COLUMNS)], ignore_index=True)
        self.write_sheet(df, SHEET_LOANS)

    def delete_loan(self, loan_id: str) -> None:
        for sheet in SHEETS:
            df = self.read_sheet(sheet)
            if "loan_id" in df.columns:
                self.write_sheet(df[df["loan_id"].astype(str) != loan_id], sheet)
        logger.info("Deleted loan %s with its schedule and modifications", loan_id)

    # ---- EMI schedules ----

    def get_schedule(self, loan_id: str) -> pd.DataFrame:
        df = self.read_sheet(SHEET_EMI_SCHEDULES)
        df = df[df["loan_id"].astype(str) == loan_id].copy()
        if df.empty:
            return pd.DataFrame(columns=SCHEDULE_COLUMNS)
        df["loan_id"] = df["loan_id"].astype(str)
        df["emi_number"] = df["emi_number"].astype(int)
        df["due_date"] = df["due_date"].astype(str).str[:10]
        for col in ["principal", "interest", "total", "outstanding_principal", "modified_interest_rate"]:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
        df["is_adjustment"] = df["is_adjustment"].fillna(False).astype(bool)
        return df[SCHEDULE_COLUMNS].sort_values("emi_number").reset_index(drop=True)

    def save_schedule(self, loan_id: str, schedule: pd.DataFrame) -> None:
        """Replace all installments of a loan"""
        df = self.read_sheet(SHEET_EMI_SCHEDULES)
        df = df[df["loan_id"].astype(str) != loan_id]
        if not schedule.empty:
            df = pd.concat([df, schedule[SCHEDULE_COLUMNS]], ignore_index=True)
        self.write_sheet(df, SHEET_EMI_SCHEDULES)

    # ---- Modifications ----

    def get_modifications(self, loan_id: str) -> List[ModificationRecord]:
        df = self.read_sheet(SHEET_MODIFICATIONS)
        df = df[df["loan_id"].astype(str) == loan_id]
        return [modification_from_record(r) for r in self._records(df)]

    def add_modification(self, modification: ModificationRecord) -> None:
        df = self.read_sheet(SHEET_MODIFICATIONS)
        row = pd.DataFrame([modification_to_record(modification)], columns=MODIFICATIONS_COLUMNS)
        df = pd.concat([df, row], ignore_index=True)
        self.write_sheet(df, SHEET_MODIFICATIONS)
