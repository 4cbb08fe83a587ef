"""Prepayment tests"""
import pytest

from core.exceptions import ArithmeticDegenerateError, InvalidArgumentError, NotFoundError
from core.prepayment import apply_prepayment
from core.rate_adjustment import change_interest_rate
from core.schedule_generator import generate_schedule
from utils.money import round_money


@pytest.fixture
def schedule(loan, today):
    return generate_schedule(loan, [], today)


def _row(sch, n):
    return sch[sch["emi_number"] == n].iloc[0]


class TestReduceEMI:
    def test_emi_drops_and_tenure_kept(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12)
        assert result.loan.emi_amount < loan.emi_amount
        assert result.loan.tenure_months == loan.tenure_months
        assert len(result.schedule) == 240
        assert result.summary["installments_recomputed"] == 228

    def test_pivot_balance_reduced(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12)
        before = _row(schedule, 12)
        after = _row(result.schedule, 12)
        assert after["outstanding_principal"] == round_money(before["outstanding_principal"] - 100_000)
        assert after["principal"] == before["principal"]
        assert after["interest"] == before["interest"]

    def test_later_rows_use_new_emi(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12)
        sch = result.schedule
        middle = sch[(sch["emi_number"] > 12) & (sch["emi_number"] < 240)]
        assert (middle["total"] == result.loan.emi_amount).all()

    def test_earlier_rows_untouched(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12)
        head_before = schedule[schedule["emi_number"] < 12].reset_index(drop=True)
        head_after = result.schedule[result.schedule["emi_number"] < 12].reset_index(drop=True)
        assert head_after["total"].tolist() == head_before["total"].tolist()
        assert head_after["outstanding_principal"].tolist() == head_before["outstanding_principal"].tolist()

    def test_outstanding_only_decreases(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12)
        old = schedule.set_index("emi_number")["outstanding_principal"]
        new = result.schedule.set_index("emi_number")["outstanding_principal"]
        assert (new.loc[13:] <= old.loc[13:]).all()
        assert new.loc[240] == pytest.approx(0, abs=0.01)

    def test_interest_saved(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12)
        assert result.summary["interest_saved"] > 0
        assert result.summary["remaining_principal_after"] == round_money(
            result.summary["remaining_principal_before"] - 100_000
        )

    def test_input_schedule_not_mutated(self, loan, schedule):
        snapshot = schedule.copy()
        apply_prepayment(loan, schedule, 100_000, 12)
        assert schedule.equals(snapshot)


class TestReduceTenure:
    def test_tenure_shrinks_and_emi_kept(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12, reduce_tenure=True)
        assert result.loan.emi_amount == loan.emi_amount
        assert result.loan.tenure_months < loan.tenure_months
        assert result.schedule["emi_number"].max() == result.loan.tenure_months
        assert len(result.schedule) == result.loan.tenure_months
        assert result.schedule.iloc[-1]["outstanding_principal"] == 0.0

    def test_principal_still_adds_up(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 100_000, 12, reduce_tenure=True)
        assert result.schedule["principal"].sum() + 100_000 == pytest.approx(loan.principal, abs=0.01)

    def test_longer_tenure_appends_installments(self, loan, schedule):
        raised = change_interest_rate(loan, schedule, 9.0, "all")
        result = apply_prepayment(loan, raised.schedule, 1_000, 12, reduce_tenure=True)
        sch = result.schedule
        assert result.loan.tenure_months > loan.tenure_months
        assert sch["emi_number"].tolist() == list(range(1, result.loan.tenure_months + 1))
        assert (sch["total"] <= loan.emi_amount + 0.01).all()
        assert sch.iloc[-1]["outstanding_principal"] == 0.0

        appended = sch[sch["emi_number"] > loan.tenure_months]
        assert (appended["modified_interest_rate"] == 9.0).all()
        assert (appended["status"] == "upcoming").all()
        assert appended.iloc[0]["due_date"] == "2045-01-05"
        assert appended.iloc[0]["emi_id"] == f"{loan.loan_id}-emi-241"

    def test_zero_rate_straight_line(self, make_loan, today):
        loan = make_loan(principal=120_000, rate=0, tenure=12)
        schedule = generate_schedule(loan, [], today)
        result = apply_prepayment(loan, schedule, 25_000, 2, reduce_tenure=True)
        assert result.loan.tenure_months == 10
        assert result.schedule["total"].tolist()[2:] == [10_000.0] * 7 + [5_000.0]

    def test_emi_below_interest_rejected(self, make_loan, today):
        loan = make_loan(principal=1_000_000, rate=12, tenure=240)
        schedule = generate_schedule(loan, [], today)
        tiny = loan.with_updates(emi_amount=5_000)
        with pytest.raises(ArithmeticDegenerateError):
            apply_prepayment(tiny, schedule, 1_000, 1, reduce_tenure=True)


class TestEdgeCases:
    def test_amount_must_be_positive(self, loan, schedule):
        with pytest.raises(InvalidArgumentError):
            apply_prepayment(loan, schedule, 0, 12)

    def test_unknown_emi(self, loan, schedule):
        with pytest.raises(NotFoundError) as exc:
            apply_prepayment(loan, schedule, 1_000, 999)
        assert "999" in exc.value.message

    def test_last_installment_touches_nothing_else(self, loan, schedule):
        result = apply_prepayment(loan, schedule, 1_000, 240)
        assert result.loan == loan
        assert result.summary["installments_recomputed"] == 0

    def test_paid_rows_not_recomputed(self, loan, schedule):
        schedule.loc[schedule["emi_number"] <= 20, "status"] = "paid"
        result = apply_prepayment(loan, schedule, 100_000, 12)
        assert result.summary["installments_recomputed"] == 220
        assert _row(result.schedule, 15)["total"] == _row(schedule, 15)["total"]
