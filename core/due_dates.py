"""Shift the due dates of a range of installments"""
import logging
from datetime import date

import pandas as pd

from core.exceptions import InvalidArgumentError
from core.reamortization import find_row, prepare_schedule
from utils.date_utils import add_months, to_iso

logger = logging.getLogger(__name__)


def shift_due_dates(
    schedule: pd.DataFrame,
    start_emi_number: int,
    end_emi_number: int,
    new_start_date: date,
) -> pd.DataFrame:
    """Re-date EMIs start..end monthly from new_start_date; amounts are untouched"""
    if start_emi_number < 1:
        raise InvalidArgumentError("Start EMI number must be at least 1")
    if end_emi_number < start_emi_number:
        raise InvalidArgumentError("End EMI number must be greater than or equal to start EMI number")

    df = prepare_schedule(schedule)
    find_row(df, start_emi_number)

    in_range = (df["emi_number"] >= start_emi_number) & (df["emi_number"] <= end_emi_number)
    for label in df.index[in_range.to_numpy()]:
        offset = int(df.at[label, "emi_number"]) - start_emi_number
        df.at[label, "due_date"] = to_iso(add_months(new_start_date, offset))

    logger.debug("Shifted due dates of EMIs %s..%s to start %s", start_emi_number, end_emi_number, new_start_date)
    return df
