"""Input forms; each returns the submitted values or None"""
from datetime import date
from typing import Optional

import streamlit as st

from config.constants import LoanCategory
from config.settings import DEFAULT_INTEREST_RATE, DEFAULT_TENURE_MONTHS, MAX_INTEREST_RATE
from core.rate_adjustment import ALL_PENDING


def render_loan_form(key_prefix: str = "new") -> Optional[dict]:
    """Create-loan form"""
    with st.form(f"{key_prefix}_loan_form"):
        name = st.text_input("Loan name", value="My Home Loan")
        categories = [c.value for c in LoanCategory]
        category = st.selectbox(
            "Category", categories,
            format_func=lambda v: LoanCategory(v).label,
        )
        c1, c2, c3 = st.columns(3)
        with c1:
            principal = st.number_input("Principal", min_value=1.0, value=1_000_000.0, step=10_000.0)
        with c2:
            rate = st.number_input(
                "Annual interest rate (%)", min_value=0.0, max_value=MAX_INTEREST_RATE,
                value=DEFAULT_INTEREST_RATE, step=0.05, format="%.2f",
            )
        with c3:
            tenure = st.number_input("Tenure (months)", min_value=1, value=DEFAULT_TENURE_MONTHS, step=12)

        c4, c5 = st.columns(2)
        with c4:
            start = st.date_input("Loan start date", value=date.today())
        with c5:
            separate_emi_start = st.checkbox("First EMI on a different date")
            emi_start = st.date_input("EMI start date", value=date.today())

        if not st.form_submit_button("Create loan", type="primary"):
            return None

    return {
        "name": name,
        "category": category,
        "principal": float(principal),
        "annual_interest_rate": float(rate),
        "tenure_months": int(tenure),
        "loan_start_date": start,
        "emi_start_date": emi_start if separate_emi_start else None,
    }


def render_prepayment_form(open_emis: list) -> Optional[dict]:
    with st.form("prepayment_form"):
        amount = st.number_input("Prepayment amount", min_value=1.0, value=50_000.0, step=1_000.0)
        emi_number = st.selectbox("Paid with EMI #", open_emis)
        option = st.radio("Apply as", ["Reduce EMI", "Reduce tenure"], horizontal=True)
        if not st.form_submit_button("Apply prepayment"):
            return None
    return {"amount": float(amount), "emi_number": int(emi_number), "reduce_tenure": option == "Reduce tenure"}


def render_step_up_form(open_emis: list) -> Optional[dict]:
    with st.form("step_up_form"):
        mode = st.radio("Increase by", ["Amount", "Percentage"], horizontal=True)
        value = st.number_input("Value", min_value=0.01, value=1_000.0, step=100.0)
        from_emi = st.selectbox("From EMI #", open_emis)
        if not st.form_submit_button("Apply step-up"):
            return None
    return {
        "amount": float(value) if mode == "Amount" else None,
        "percentage": float(value) if mode == "Percentage" else None,
        "from_emi_number": int(from_emi),
    }


def render_rate_change_form(open_emis: list, current_rate: float) -> Optional[dict]:
    with st.form("rate_change_form"):
        new_rate = st.number_input(
            "New annual interest rate (%)", min_value=0.0, max_value=MAX_INTEREST_RATE,
            value=float(current_rate), step=0.05, format="%.2f",
        )
        apply_all = st.checkbox("All open EMIs", value=True)
        selected = st.multiselect("EMIs", open_emis)
        if not st.form_submit_button("Change rate"):
            return None
    return {"new_rate": float(new_rate), "affected": ALL_PENDING if apply_all else selected}


def render_date_shift_form(emi_numbers: list) -> Optional[dict]:
    with st.form("date_shift_form"):
        c1, c2 = st.columns(2)
        with c1:
            start = st.selectbox("From EMI #", emi_numbers)
        with c2:
            end = st.selectbox("To EMI #", emi_numbers, index=len(emi_numbers) - 1 if emi_numbers else 0)
        new_start = st.date_input("New due date of the first EMI", value=date.today())
        if not st.form_submit_button("Move due dates"):
            return None
    return {"start_emi_number": int(start), "end_emi_number": int(end), "new_start_date": new_start}
