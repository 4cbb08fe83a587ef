"""EMI Tracker - main entry"""
import streamlit as st

from config.constants import LoanCategory
from config.settings import EXCEL_FILE, LAYOUT, LOG_FORMAT, LOG_LEVEL, PAGE_ICON, PAGE_TITLE
from components.forms import render_loan_form
from core.exceptions import EMITrackerError
from data_manager.excel_handler import ExcelLoanRepository
from data_manager.loan_service import LoanService
from utils.formatters import fmt_amount, fmt_months, fmt_rate
from utils.logging_config import setup_logging


@st.cache_resource
def get_service() -> LoanService:
    setup_logging(LOG_LEVEL, LOG_FORMAT)
    return LoanService(ExcelLoanRepository(EXCEL_FILE))


if __name__ == "__main__":
    st.set_page_config(
        page_title=PAGE_TITLE,
        page_icon=PAGE_ICON,
        layout=LAYOUT,
        initial_sidebar_state="expanded",
    )

    service = get_service()

    st.title(f"{PAGE_ICON} {PAGE_TITLE}")

    loans = service.list_loans()
    st.subheader("Loans")
    if not loans:
        st.info("No loans yet, create one below.")
    for loan in loans:
        with st.container(border=True):
            c1, c2, c3, c4, c5 = st.columns([3, 2, 2, 2, 1])
            c1.markdown(f"**{loan.name}**  \n{LoanCategory(loan.category).label}")
            c2.metric("Principal", fmt_amount(loan.principal))
            c3.metric("EMI", fmt_amount(loan.emi_amount, 2))
            c4.metric("Rate / Tenure", f"{fmt_rate(loan.annual_interest_rate)} / {fmt_months(loan.tenure_months)}")
            if c5.button("Open", key=f"open_{loan.loan_id}"):
                st.session_state["loan_id"] = loan.loan_id
                st.switch_page("pages/1_loan_details.py")
            if c5.button("Delete", key=f"delete_{loan.loan_id}"):
                service.delete_loan(loan.loan_id)
                st.rerun()

    st.divider()
    st.subheader("New Loan")
    submitted = render_loan_form()
    if submitted:
        try:
            loan = service.create_loan(**submitted)
            service.load_schedule(loan.loan_id)
        except EMITrackerError as err:
            st.error(err.message)
        else:
            st.success(f"Loan '{loan.name}' created, EMI {fmt_amount(loan.emi_amount, 2)}")
            st.rerun()

    with st.sidebar:
        st.markdown("### About")
        st.markdown(f"{PAGE_TITLE} v1.0")
        st.markdown(f"Data is stored in `{EXCEL_FILE}`")
