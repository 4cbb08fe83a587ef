"""CSV export of an EMI schedule"""
import math
from typing import Optional

import pandas as pd

from config.constants import ADJUSTMENT_LABEL, CSV_HEADERS
from utils.date_utils import parse_date, to_iso


def _fmt_number(value) -> str:
    """Shortest plain rendering: 1594.98 -> 1594.98, 1000.0 -> 1000"""
    value = float(value)
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return repr(value)


def schedule_to_csv(schedule: pd.DataFrame, year: Optional[int] = None) -> str:
    """
    Render a schedule as CSV text.

    Header: EMI #,Due Date,Principal,Interest,Total,Outstanding Principal,Status.
    Adjustment rows show "Adjustment" as the EMI number; dates are YYYY-MM-DD.
    With `year`, only installments due in that year are exported.
    """
    sch = schedule.sort_values("emi_number")
    due = sch["due_date"].map(parse_date)
    if year is not None:
        sch = sch[due.map(lambda d: d.year == year)]
        due = due[sch.index]

    out = pd.DataFrame({
        CSV_HEADERS[0]: [
            ADJUSTMENT_LABEL if bool(adj) else str(int(n))
            for n, adj in zip(sch["emi_number"], sch["is_adjustment"])
        ],
        CSV_HEADERS[1]: [to_iso(d) for d in due],
        CSV_HEADERS[2]: sch["principal"].map(_fmt_number).tolist(),
        CSV_HEADERS[3]: sch["interest"].map(_fmt_number).tolist(),
        CSV_HEADERS[4]: sch["total"].map(_fmt_number).tolist(),
        CSV_HEADERS[5]: sch["outstanding_principal"].map(_fmt_number).tolist(),
        CSV_HEADERS[6]: sch["status"].astype(str).tolist(),
    }, columns=CSV_HEADERS)
    return out.to_csv(index=False, lineterminator="\n").rstrip("\n")


def csv_filename(loan_id: str, year: Optional[int] = None) -> str:
    suffix = f"-{year}" if year is not None else ""
    return f"emi-schedule-{loan_id}{suffix}.csv"
