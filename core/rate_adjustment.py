"""Interest-rate change handling"""
import logging
from typing import Iterable, Union

import pandas as pd

from config.settings import MAX_INTEREST_RATE
from core.exceptions import InvalidArgumentError
from core.reamortization import (
    ModificationResult, balance_before, open_mask, prepare_schedule, reamortize,
)
from data_manager.schema import Loan
from utils.money import round_money

logger = logging.getLogger(__name__)

ALL_PENDING = "all"


def nominated_emis(schedule: pd.DataFrame, affected: Union[str, Iterable[int]]) -> list:
    """Open regular installments selected by the caller ("all" or explicit numbers)"""
    df = schedule
    candidates = df[open_mask(df) & ~df["is_adjustment"].astype(bool)]
    if isinstance(affected, str):
        if affected != ALL_PENDING:
            raise InvalidArgumentError(f"Unknown installment selection: {affected!r}")
        return sorted(int(n) for n in candidates["emi_number"])
    wanted = {int(n) for n in affected}
    return sorted(int(n) for n in candidates["emi_number"] if int(n) in wanted)


def change_interest_rate(
    loan: Loan,
    schedule: pd.DataFrame,
    new_rate: float,
    affected: Union[str, Iterable[int]] = ALL_PENDING,
) -> ModificationResult:
    """
    Apply a new annual rate starting at the first nominated open installment.

    Once triggered, the change carries through every later open installment of
    the schedule, not only the nominated ones; all of them are tagged with the
    new rate. The EMI amount is unchanged; a balance the fixed EMI no longer
    clears stays outstanding after the final installment.
    """
    if new_rate is None or not 0 <= new_rate <= MAX_INTEREST_RATE:
        raise InvalidArgumentError(f"Interest rate must be between 0 and {MAX_INTEREST_RATE:g}%")

    df = prepare_schedule(schedule)
    selected = nominated_emis(df, affected)
    if not selected:
        logger.debug("Rate change on loan %s matched no open installments", loan.loan_id)
        return ModificationResult(loan, df, {
            "new_rate": new_rate,
            "nominated_emis": [],
            "installments_recomputed": 0,
            "interest_change": 0.0,
        })

    first = selected[0]
    carried = (df["emi_number"] >= first) & open_mask(df) & ~df["is_adjustment"]
    old_interest = round_money(df.loc[carried, "interest"].sum())

    reamortize(
        df, df.index[carried.to_numpy()], balance_before(df, first, loan), loan.emi_amount,
        lambda label: new_rate, tag_rate=new_rate,
    )

    new_interest = round_money(df.loc[carried, "interest"].sum())
    summary = {
        "new_rate": new_rate,
        "nominated_emis": selected,
        "first_emi": first,
        "installments_recomputed": int(carried.sum()),
        "old_remaining_interest": old_interest,
        "new_remaining_interest": new_interest,
        "interest_change": round_money(new_interest - old_interest),
    }
    logger.debug("Rate change to %.4f%% on loan %s: %s", new_rate, loan.loan_id, summary)
    return ModificationResult(loan, df, summary)
