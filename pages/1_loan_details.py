"""Loan details"""
import streamlit as st

from app import get_service
from components.charts import create_outstanding_line, create_stacked_area, create_status_pie
from components.forms import (
    render_date_shift_form, render_prepayment_form, render_rate_change_form, render_step_up_form,
)
from components.metrics import render_loan_metrics
from components.tables import render_modifications_table, render_schedule_table, schedule_years
from config.constants import ModificationKind
from core.exceptions import EMITrackerError
from core.reamortization import open_mask
from data_manager.csv_export import csv_filename

st.set_page_config(page_title="Loan Details", page_icon="📄", layout="wide")
st.title("📄 Loan Details")

service = get_service()
loans = service.list_loans()
if not loans:
    st.info("No loans yet, create one on the main page.")
    st.stop()

loan_ids = [loan.loan_id for loan in loans]
default = st.session_state.get("loan_id")
loan_id = st.selectbox(
    "Loan", loan_ids,
    index=loan_ids.index(default) if default in loan_ids else 0,
    format_func=lambda lid: next(loan.name for loan in loans if loan.loan_id == lid),
)
st.session_state["loan_id"] = loan_id


def run(action, *args, **kwargs):
    """Run a service call and report the outcome on the page"""
    try:
        action(*args, **kwargs)
    except EMITrackerError as err:
        st.error(err.message)
    else:
        st.rerun()


loan = service.get_loan(loan_id)
schedule = service.load_schedule(loan_id)
modifications = service.repository.get_modifications(loan_id)

render_loan_metrics(loan, service.summary(loan_id))
st.divider()

# Charts
prepayment_emis = [n for m in modifications if m.kind == ModificationKind.PREPAYMENT for n in m.affected_emis]
col1, col2 = st.columns(2)
with col1:
    st.plotly_chart(create_outstanding_line(schedule, prepayment_emis), width='stretch')
with col2:
    st.plotly_chart(create_stacked_area(schedule), width='stretch')
st.plotly_chart(create_status_pie(schedule), width='stretch')

st.divider()

# Schedule by year
st.subheader("EMI Schedule")
years = schedule_years(schedule)
c1, c2 = st.columns([3, 1])
with c1:
    year = st.selectbox("Year", ["All"] + years)
year = None if year == "All" else year
render_schedule_table(schedule, year)
with c2:
    st.download_button(
        "⬇️ Download CSV",
        data=service.export_csv(loan_id, year),
        file_name=csv_filename(loan_id, year),
        mime="text/csv",
    )

open_emis = [int(n) for n in schedule.loc[open_mask(schedule) & ~schedule["is_adjustment"], "emi_number"]]
regular_emis = [int(n) for n in schedule.loc[~schedule["is_adjustment"], "emi_number"]]

with st.expander("Mark EMI as paid"):
    to_pay = st.selectbox("EMI #", open_emis, key="pay_emi")
    if st.button("Mark paid") and to_pay is not None:
        run(service.mark_as_paid, loan_id, to_pay)

st.divider()

# Modifications
st.subheader("Modify Loan")
tab_prepay, tab_step, tab_rate, tab_dates = st.tabs(["Prepayment", "Step-up", "Interest Rate", "Due Dates"])
with tab_prepay:
    values = render_prepayment_form(open_emis)
    if values:
        run(service.apply_prepayment, loan_id, **values)
with tab_step:
    values = render_step_up_form(open_emis)
    if values:
        run(service.apply_step_up, loan_id, **values)
with tab_rate:
    values = render_rate_change_form(open_emis, loan.annual_interest_rate)
    if values:
        run(service.change_interest_rate, loan_id, **values)
with tab_dates:
    values = render_date_shift_form(regular_emis)
    if values:
        run(service.update_emi_dates, loan_id, **values)

if st.button("Regenerate schedule from loan terms"):
    run(service.regenerate_schedule, loan_id)

st.subheader("Modification History")
render_modifications_table(modifications)
