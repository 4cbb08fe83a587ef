"""Loan service tests (in-memory repository)"""
from datetime import date

import pytest

from config.constants import ModificationKind
from core.exceptions import InvalidArgumentError, NotFoundError
from data_manager.loan_service import LoanService
from data_manager.repository import InMemoryLoanRepository


@pytest.fixture
def service(today):
    return LoanService(InMemoryLoanRepository(), today=today)


@pytest.fixture
def loan(service):
    return service.create_loan("Home", 1_000_000, 8.5, 240, date(2025, 1, 5), category="home")


class TestLoans:
    def test_create_computes_emi(self, loan):
        assert 8678 < loan.emi_amount < 8679
        assert loan.created_at is not None

    @pytest.mark.parametrize("kwargs", [
        dict(name="", principal=1000, annual_interest_rate=8, tenure_months=12),
        dict(name="x", principal=0, annual_interest_rate=8, tenure_months=12),
        dict(name="x", principal=1000, annual_interest_rate=101, tenure_months=12),
        dict(name="x", principal=1000, annual_interest_rate=8, tenure_months=0),
    ])
    def test_create_rejects_invalid(self, service, kwargs):
        with pytest.raises(InvalidArgumentError):
            service.create_loan(loan_start_date=date(2025, 1, 5), **kwargs)

    def test_get_missing(self, service):
        with pytest.raises(NotFoundError):
            service.get_loan("nope")

    def test_update_recomputes_emi(self, service, loan):
        updated = service.update_loan(loan.loan_id, tenure_months=120)
        assert updated.emi_amount > loan.emi_amount
        assert service.get_loan(loan.loan_id) == updated

    def test_update_name_keeps_emi(self, service, loan):
        updated = service.update_loan(loan.loan_id, name="Renamed")
        assert updated.emi_amount == loan.emi_amount

    def test_emi_not_directly_editable(self, service, loan):
        with pytest.raises(InvalidArgumentError):
            service.update_loan(loan.loan_id, emi_amount=1.0)

    def test_delete(self, service, loan):
        service.delete_loan(loan.loan_id)
        assert service.list_loans() == []
        with pytest.raises(NotFoundError):
            service.delete_loan(loan.loan_id)

    def test_delete_releases_lock(self, service, loan):
        service.load_schedule(loan.loan_id)
        assert loan.loan_id in service._locks
        service.delete_loan(loan.loan_id)
        assert loan.loan_id not in service._locks
        with pytest.raises(NotFoundError):
            service.delete_loan("nope")
        assert "nope" not in service._locks


class TestSchedules:
    def test_first_load_generates(self, service, loan):
        schedule = service.load_schedule(loan.loan_id)
        assert len(schedule) == 240
        assert len(service.repository.get_schedule(loan.loan_id)) == 240

    def test_statuses_refreshed_on_load(self):
        service = LoanService(InMemoryLoanRepository(), today=date(2025, 1, 1))
        loan = service.create_loan("Home", 120_000, 0, 12, date(2025, 1, 5))
        service.load_schedule(loan.loan_id)
        service._today = date(2025, 3, 5)
        schedule = service.load_schedule(loan.loan_id)
        assert schedule["status"].tolist()[:4] == ["paid", "paid", "pending", "upcoming"]
        assert service.repository.get_schedule(loan.loan_id)["status"].tolist()[:3] == ["paid", "paid", "pending"]

    def test_mark_as_paid(self, service, loan):
        service.load_schedule(loan.loan_id)
        service.mark_as_paid(loan.loan_id, 5)
        stored = service.repository.get_schedule(loan.loan_id)
        assert stored.loc[stored["emi_number"] == 5, "status"].iloc[0] == "paid"
        assert len(stored) == 240

    def test_mark_missing_emi(self, service, loan):
        service.load_schedule(loan.loan_id)
        with pytest.raises(NotFoundError):
            service.mark_as_paid(loan.loan_id, 500)

    def test_update_emi_dates(self, service, loan):
        service.load_schedule(loan.loan_id)
        service.update_emi_dates(loan.loan_id, 2, 3, date(2025, 3, 1))
        stored = service.repository.get_schedule(loan.loan_id)
        assert stored["due_date"].tolist()[:4] == ["2025-01-05", "2025-03-01", "2025-04-01", "2025-04-05"]


class TestModifications:
    def test_prepayment_persisted(self, service, loan):
        service.load_schedule(loan.loan_id)
        result = service.apply_prepayment(loan.loan_id, 100_000, 12)
        assert service.get_loan(loan.loan_id).emi_amount == result.loan.emi_amount < loan.emi_amount

        (record,) = service.repository.get_modifications(loan.loan_id)
        assert record.kind == ModificationKind.PREPAYMENT
        assert record.affected_emis == (12,)
        assert record.amount == 100_000

    def test_rejected_prepayment_changes_nothing(self, service, loan):
        before = service.load_schedule(loan.loan_id)
        with pytest.raises(InvalidArgumentError):
            service.apply_prepayment(loan.loan_id, -1, 12)
        assert service.repository.get_schedule(loan.loan_id).equals(before)
        assert service.repository.get_modifications(loan.loan_id) == []

    def test_step_up_records_affected_rows(self, service, loan):
        service.apply_step_up(loan.loan_id, 1000, None, 230)
        (record,) = service.repository.get_modifications(loan.loan_id)
        assert record.kind == ModificationKind.STEPUP
        assert record.affected_emis == tuple(range(230, 241))
        assert service.get_loan(loan.loan_id).emi_amount == pytest.approx(loan.emi_amount + 1000)

    def test_rate_change_replayed_on_regenerate(self, service, loan):
        service.load_schedule(loan.loan_id)
        service.change_interest_rate(loan.loan_id, 9.0, [50])
        (record,) = service.repository.get_modifications(loan.loan_id)
        assert record.affected_emis == (50,)
        assert service.get_loan(loan.loan_id).annual_interest_rate == 8.5

        regenerated = service.regenerate_schedule(loan.loan_id)
        assert regenerated.loc[regenerated["emi_number"] == 50, "modified_interest_rate"].iloc[0] == 9.0

    def test_regenerate_drops_prepayment_effect(self, service, loan):
        original = service.load_schedule(loan.loan_id)
        service.apply_prepayment(loan.loan_id, 100_000, 12)
        regenerated = service.regenerate_schedule(loan.loan_id)
        changed = service.get_loan(loan.loan_id)
        assert len(regenerated) == 240
        assert regenerated.iloc[0]["total"] == changed.emi_amount
        assert regenerated.iloc[0]["total"] != original.iloc[0]["total"]


class TestReporting:
    def test_export_csv(self, service, loan):
        text = service.export_csv(loan.loan_id, 2025)
        assert text.split("\n")[0].startswith("EMI #,Due Date")
        assert len(text.split("\n")) == 13

    def test_summary(self, service, loan):
        summary = service.summary(loan.loan_id)
        assert summary["remaining_installments"] == 240
        assert summary["emi_amount"] == loan.emi_amount
