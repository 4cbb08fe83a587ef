"""Installment status tests"""
from datetime import date

import pandas as pd
import pytest

from core.status import refresh_statuses, resolve_status

TODAY = date(2025, 6, 15)


class TestResolveStatus:
    @pytest.mark.parametrize("due, expected", [
        ("2025-06-14", "paid"),
        ("2025-06-15", "pending"),
        ("2025-06-16", "upcoming"),
        (date(2030, 1, 1), "upcoming"),
    ])
    def test_by_due_date(self, due, expected):
        assert resolve_status(due, None, TODAY) == expected

    @pytest.mark.parametrize("previous", ["paid", "modified"])
    def test_sticky_statuses(self, previous):
        assert resolve_status("2030-01-01", previous, TODAY) == previous

    def test_open_statuses_reclassified(self):
        assert resolve_status("2025-06-01", "upcoming", TODAY) == "paid"
        assert resolve_status("2025-06-15", "upcoming", TODAY) == "pending"


class TestRefreshStatuses:
    def test_returns_copy(self):
        df = pd.DataFrame({
            "due_date": ["2025-05-15", "2025-06-15", "2025-07-15"],
            "status": ["upcoming", "upcoming", "modified"],
        })
        out = refresh_statuses(df, TODAY)
        assert out["status"].tolist() == ["paid", "pending", "modified"]
        assert df["status"].tolist() == ["upcoming", "upcoming", "modified"]

    def test_empty(self):
        df = pd.DataFrame(columns=["due_date", "status"])
        assert refresh_statuses(df, TODAY).empty
