"""Metric cards"""
import streamlit as st

from data_manager.schema import Loan
from utils.formatters import fmt_amount, fmt_months, fmt_percent, fmt_rate


def render_loan_metrics(loan: Loan, summary: dict):
    """Headline figures of one loan"""
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.metric("Principal", fmt_amount(loan.principal))
        st.metric("Interest Rate", fmt_rate(loan.annual_interest_rate))
    with c2:
        st.metric("EMI", fmt_amount(summary["emi_amount"], 2))
        st.metric("Tenure", fmt_months(loan.tenure_months))
    with c3:
        st.metric("Total Interest", fmt_amount(summary["total_interest"]))
        st.metric("Total Payment", fmt_amount(summary["total_payment"]))
    with c4:
        st.metric("Outstanding", fmt_amount(summary["outstanding_principal"]))
        st.metric(
            "Paid / Remaining",
            f"{summary['paid_installments']} / {summary['remaining_installments']}",
        )
    interest_share = summary["total_interest"] / summary["total_payment"] if summary["total_payment"] else 0.0
    st.caption(
        f"Effective annual rate (IRR): {fmt_rate(summary['effective_annual_rate'])}  ·  "
        f"Interest share of payments: {fmt_percent(interest_share)}"
    )
