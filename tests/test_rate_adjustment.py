"""Interest-rate change tests"""
from datetime import date

import pytest

from core.exceptions import InvalidArgumentError
from core.rate_adjustment import change_interest_rate, nominated_emis
from core.schedule_generator import generate_schedule
from utils.money import monthly_rate, round_money


@pytest.fixture
def schedule(loan, today):
    return generate_schedule(loan, [], today)


class TestChangeInterestRate:
    def test_change_propagates_past_nominated_emi(self, loan, schedule):
        result = change_interest_rate(loan, schedule, 9.0, [50])
        sch = result.schedule
        tagged = sch[sch["emi_number"] >= 50]
        untouched = sch[sch["emi_number"] < 50]
        assert len(tagged) == 191
        assert (tagged["modified_interest_rate"] == 9.0).all()
        assert untouched["modified_interest_rate"].isna().all()

    def test_loan_unchanged(self, loan, schedule):
        result = change_interest_rate(loan, schedule, 9.0, [50])
        assert result.loan == loan

    def test_interest_at_new_rate(self, loan, schedule):
        result = change_interest_rate(loan, schedule, 9.0, [50])
        prev_balance = schedule.loc[schedule["emi_number"] == 49, "outstanding_principal"].iloc[0]
        row = result.schedule[result.schedule["emi_number"] == 50].iloc[0]
        assert row["interest"] == round_money(prev_balance * monthly_rate(9.0))
        assert row["total"] == loan.emi_amount

    def test_shortfall_stays_outstanding(self, loan, schedule):
        result = change_interest_rate(loan, schedule, 9.0, [50])
        last = result.schedule.iloc[-1]
        assert last["total"] <= loan.emi_amount + 0.01
        assert last["outstanding_principal"] > 0
        assert (result.schedule["total"] <= loan.emi_amount + 0.01).all()
        assert result.summary["interest_change"] > 0

    def test_lower_rate_clears_early(self, loan, schedule):
        result = change_interest_rate(loan, schedule, 7.5)
        assert result.schedule.iloc[-1]["outstanding_principal"] == 0.0
        assert result.schedule.iloc[-1]["total"] == 0.0

    def test_lower_rate_saves_interest(self, loan, schedule):
        result = change_interest_rate(loan, schedule, 7.5)
        assert result.summary["interest_change"] < 0

    def test_all_starts_at_first_open_emi(self, loan, schedule):
        schedule.loc[schedule["emi_number"] < 60, "status"] = "paid"
        result = change_interest_rate(loan, schedule, 9.0, "all")
        assert result.summary["first_emi"] == 60
        assert result.summary["installments_recomputed"] == 181
        assert result.schedule[result.schedule["emi_number"] < 60]["modified_interest_rate"].isna().all()

    def test_no_open_installments(self, loan, schedule):
        schedule["status"] = "paid"
        result = change_interest_rate(loan, schedule, 9.0)
        assert result.summary["installments_recomputed"] == 0

    @pytest.mark.parametrize("rate", [-0.5, 100.01])
    def test_rate_out_of_range(self, loan, schedule, rate):
        with pytest.raises(InvalidArgumentError):
            change_interest_rate(loan, schedule, rate)

    def test_adjustment_row_skipped(self, make_loan, today):
        loan = make_loan(start=date(2025, 1, 20), emi_start=date(2025, 2, 5), tenure=24)
        schedule = generate_schedule(loan, [], today)
        result = change_interest_rate(loan, schedule, 9.0)
        adj = result.schedule[result.schedule["is_adjustment"]].iloc[0]
        assert adj["interest"] == schedule.iloc[0]["interest"]
        assert result.summary["installments_recomputed"] == 24


class TestNominatedEMIs:
    def test_all(self, schedule):
        assert nominated_emis(schedule, "all") == list(range(1, 241))

    def test_explicit_selection_filters_closed(self, schedule):
        schedule.loc[schedule["emi_number"] == 3, "status"] = "paid"
        assert nominated_emis(schedule, [5, 3, 7]) == [5, 7]

    def test_unknown_keyword(self, schedule):
        with pytest.raises(InvalidArgumentError):
            nominated_emis(schedule, "some")
