"""CSV export tests"""
from datetime import date

import pandas as pd

from core.schedule_generator import generate_schedule
from data_manager.csv_export import csv_filename, schedule_to_csv

HEADER = "EMI #,Due Date,Principal,Interest,Total,Outstanding Principal,Status"


def _frame(rows):
    return pd.DataFrame(rows, columns=[
        "emi_number", "due_date", "principal", "interest", "total",
        "outstanding_principal", "status", "is_adjustment",
    ])


class TestScheduleToCSV:
    def test_header_and_rows(self):
        df = _frame([
            (2, "2025-03-05", 1000.0, 50.5, 1050.5, 0.0, "upcoming", False),
            (1, "2025-02-05", 999.99, 60.0, 1059.99, 1000.0, "paid", False),
        ])
        lines = schedule_to_csv(df).split("\n")
        assert lines == [
            HEADER,
            "1,2025-02-05,999.99,60,1059.99,1000,paid",
            "2,2025-03-05,1000,50.5,1050.5,0,upcoming",
        ]

    def test_adjustment_label(self, make_loan, today):
        loan = make_loan(start=date(2025, 1, 20), emi_start=date(2025, 2, 5), tenure=6)
        text = schedule_to_csv(generate_schedule(loan, [], today))
        lines = text.split("\n")
        assert lines[0] == HEADER
        assert lines[1].startswith("Adjustment,2025-01-20,")
        assert lines[2].startswith("1,2025-02-05,")
        assert len(lines) == 8

    def test_year_filter(self, loan, today):
        text = schedule_to_csv(generate_schedule(loan, [], today), year=2026)
        lines = text.split("\n")
        assert len(lines) == 13
        assert all(",2026-" in line for line in lines[1:])

    def test_empty_year(self, loan, today):
        assert schedule_to_csv(generate_schedule(loan, [], today), year=1999) == HEADER


class TestCSVFilename:
    def test_names(self):
        assert csv_filename("abc") == "emi-schedule-abc.csv"
        assert csv_filename("abc", 2026) == "emi-schedule-abc-2026.csv"
