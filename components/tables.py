"""Schedule tables"""
import pandas as pd
import streamlit as st

from config.constants import ADJUSTMENT_LABEL

STATUS_ICONS = {
    "paid": "✅ paid",
    "pending": "⏳ pending",
    "upcoming": "📅 upcoming",
    "modified": "✏️ modified",
}


def schedule_years(schedule: pd.DataFrame) -> list:
    """Distinct due-date years, ascending"""
    if schedule.empty:
        return []
    return sorted({int(d[:4]) for d in schedule["due_date"].astype(str)})


def render_schedule_table(schedule: pd.DataFrame, year: int = None):
    """Render the installments of a schedule, optionally one year only"""
    if schedule.empty:
        st.info("No installments yet")
        return

    display_df = schedule.sort_values("emi_number").copy()
    if year is not None:
        display_df = display_df[display_df["due_date"].astype(str).str[:4] == str(year)]

    display_df["emi_number"] = [
        ADJUSTMENT_LABEL if adj else str(n)
        for n, adj in zip(display_df["emi_number"], display_df["is_adjustment"])
    ]

    col_map = {
        "emi_number": "EMI #",
        "due_date": "Due Date",
        "principal": "Principal",
        "interest": "Interest",
        "total": "Total",
        "outstanding_principal": "Outstanding",
        "modified_interest_rate": "Rate (%)",
        "status": "Status",
    }
    display_df = display_df[list(col_map)].rename(columns=col_map)

    for col in ["Principal", "Interest", "Total", "Outstanding"]:
        display_df[col] = display_df[col].apply(lambda x: f"{x:,.2f}")
    display_df["Rate (%)"] = display_df["Rate (%)"].apply(lambda x: "" if pd.isna(x) else f"{x:.2f}")
    display_df["Status"] = display_df["Status"].map(STATUS_ICONS).fillna(display_df["Status"])

    st.dataframe(display_df, width='stretch', hide_index=True)


def render_modifications_table(modifications: list):
    """Audit trail of applied modifications"""
    if not modifications:
        st.info("No modifications recorded")
        return

    rows = []
    for m in modifications:
        rows.append({
            "Date": m.date.isoformat(),
            "Type": m.kind.label,
            "Amount": getattr(m, "amount", None),
            "Percentage": getattr(m, "percentage", None),
            "New Rate (%)": getattr(m, "new_interest_rate", None),
            "EMIs": ", ".join(str(n) for n in m.affected_emis),
        })
    st.dataframe(pd.DataFrame(rows), width='stretch', hide_index=True)
