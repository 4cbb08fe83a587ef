import functools

import click

from config.constants import LoanCategory
from config.settings import EXCEL_FILE, LOG_FORMAT, LOG_LEVEL
from core.calculator import compute_emi
from core.exceptions import EMITrackerError, InvalidArgumentError
from core.schedule_generator import generate_schedule
from data_manager.csv_export import csv_filename, schedule_to_csv
from data_manager.data_validator import validate_loan
from data_manager.excel_handler import ExcelLoanRepository
from data_manager.loan_service import LoanService
from data_manager.schema import Loan
from utils.formatters import fmt_amount, fmt_months, fmt_rate
from utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

DATE = click.DateTime(formats=["%Y-%m-%d"])


def handle_errors(func):
    """Surface engine errors as click errors (exit code 1)"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except EMITrackerError as err:
            logger.debug("Command %s failed", func.__name__, exc_info=True)
            raise click.ClickException(f"[{err.kind}] {err.message}") from err
    return wrapper


def _service(ctx: click.Context) -> LoanService:
    return LoanService(ExcelLoanRepository(ctx.obj["data_file"]))


def _echo_result(result):
    for key, value in result.summary.items():
        click.echo(f"{key}: {value}")
    if result.loan is not None:
        click.echo(f"EMI: {result.loan.emi_amount:.2f}  Tenure: {result.loan.tenure_months} months")


@click.group()
@click.option('--data-file', type=click.Path(dir_okay=False), default=str(EXCEL_FILE), show_default=True,
              help='Workbook holding loans, schedules and modifications')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default=LOG_LEVEL, show_default=True, help='Log level')
@click.pass_context
def cli(ctx, data_file, log_level):
    """EMI tracker: loan schedules, prepayments, step-ups and rate changes."""
    setup_logging(log_level, LOG_FORMAT)
    ctx.ensure_object(dict)
    ctx.obj["data_file"] = data_file


@cli.command('compute-emi')
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--annual-rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--tenure-months', type=int, required=True, help='Loan tenure in months')
def compute_emi_command(principal, annual_rate, tenure_months):
    """Calculates the monthly EMI for a loan."""
    emi = compute_emi(principal, annual_rate, tenure_months)
    total = emi * tenure_months
    click.echo(f"EMI: {emi:.2f}")
    click.echo(f"Total payment: {total:.2f}")
    click.echo(f"Total interest: {total - principal:.2f}")


@cli.command('generate-schedule')
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--annual-rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--tenure-months', type=int, required=True, help='Loan tenure in months')
@click.option('--start-date', type=DATE, required=True, help='Loan start date (YYYY-MM-DD)')
@click.option('--emi-start-date', type=DATE, help='First EMI date (YYYY-MM-DD)')
@handle_errors
def generate_schedule_command(principal, annual_rate, tenure_months, start_date, emi_start_date):
    """Generates a schedule for ad-hoc loan terms and outputs it as CSV."""
    start = start_date.date()
    emi_start = emi_start_date.date() if emi_start_date else None
    ok, msg = validate_loan("adhoc", LoanCategory.OTHER.value, principal, annual_rate, tenure_months, start, emi_start)
    if not ok:
        raise InvalidArgumentError(msg)
    loan = Loan(
        loan_id="adhoc",
        name="adhoc",
        category=LoanCategory.OTHER.value,
        principal=principal,
        annual_interest_rate=annual_rate,
        tenure_months=tenure_months,
        loan_start_date=start,
        emi_start_date=emi_start,
        emi_amount=compute_emi(principal, annual_rate, tenure_months),
    )
    click.echo(schedule_to_csv(generate_schedule(loan)))


@cli.command('add-loan')
@click.option('--name', type=str, required=True, help='Loan name')
@click.option('--category', type=click.Choice([c.value for c in LoanCategory]), default=LoanCategory.OTHER.value,
              help='Loan category')
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--annual-rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--tenure-months', type=int, required=True, help='Loan tenure in months')
@click.option('--start-date', type=DATE, required=True, help='Loan start date (YYYY-MM-DD)')
@click.option('--emi-start-date', type=DATE, help='First EMI date (YYYY-MM-DD)')
@click.pass_context
@handle_errors
def add_loan(ctx, name, category, principal, annual_rate, tenure_months, start_date, emi_start_date):
    """Adds a new loan and generates its schedule."""
    service = _service(ctx)
    loan = service.create_loan(
        name, principal, annual_rate, tenure_months, start_date.date(),
        emi_start_date.date() if emi_start_date else None, category,
    )
    service.load_schedule(loan.loan_id)
    click.echo(f"Loan '{loan.loan_id}' added successfully. EMI: {loan.emi_amount:.2f}")


@cli.command('list-loans')
@click.pass_context
def list_loans(ctx):
    """Lists all loans."""
    loans = _service(ctx).list_loans()
    if not loans:
        click.echo("No loans found.")
        return
    for loan in loans:
        click.echo(
            f"{loan.loan_id}  {loan.name}  [{LoanCategory(loan.category).label}]  "
            f"{fmt_amount(loan.principal)} @ {fmt_rate(loan.annual_interest_rate)}  "
            f"{fmt_months(loan.tenure_months)}  EMI {fmt_amount(loan.emi_amount, 2)}"
        )


@cli.command('show-schedule')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--year', type=int, help='Only installments due in this year')
@click.pass_context
@handle_errors
def show_schedule(ctx, loan_id, year):
    """Shows a loan's schedule with statuses brought up to date."""
    schedule = _service(ctx).load_schedule(loan_id)
    if year is not None:
        schedule = schedule[schedule["due_date"].str[:4] == str(year)]
    cols = ["emi_number", "due_date", "principal", "interest", "total", "outstanding_principal", "status"]
    click.echo(schedule[cols].to_string(index=False))


@cli.command('prepay')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--amount', type=float, required=True, help='Prepayment amount')
@click.option('--emi-number', type=int, required=True, help='Installment the prepayment is made with')
@click.option('--reduce-tenure', is_flag=True, help='Keep the EMI and shorten the tenure')
@click.pass_context
@handle_errors
def prepay(ctx, loan_id, amount, emi_number, reduce_tenure):
    """Applies a prepayment and re-amortizes the remaining installments."""
    _echo_result(_service(ctx).apply_prepayment(loan_id, amount, emi_number, reduce_tenure))


@cli.command('step-up')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--amount', type=float, help='Flat EMI increase')
@click.option('--percentage', type=float, help='Percentage EMI increase')
@click.option('--from-emi', type=int, required=True, help='First installment paying the new EMI')
@click.pass_context
@handle_errors
def step_up(ctx, loan_id, amount, percentage, from_emi):
    """Raises the EMI from an installment onward."""
    _echo_result(_service(ctx).apply_step_up(loan_id, amount, percentage, from_emi))


@cli.command('change-rate')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--new-rate', type=float, required=True, help='New annual interest rate (%)')
@click.option('--emi', 'emis', type=int, multiple=True, help='Nominated installment (repeatable); default all open')
@click.pass_context
@handle_errors
def change_rate(ctx, loan_id, new_rate, emis):
    """Changes the interest rate from the first nominated installment onward."""
    _echo_result(_service(ctx).change_interest_rate(loan_id, new_rate, list(emis) if emis else "all"))


@cli.command('shift-dates')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--start-emi', type=int, required=True, help='First installment to move')
@click.option('--end-emi', type=int, required=True, help='Last installment to move')
@click.option('--new-start-date', type=DATE, required=True, help='New due date of the first moved installment')
@click.pass_context
@handle_errors
def shift_dates(ctx, loan_id, start_emi, end_emi, new_start_date):
    """Moves the due dates of a range of installments."""
    _service(ctx).update_emi_dates(loan_id, start_emi, end_emi, new_start_date.date())
    click.echo(f"Due dates of EMIs {start_emi}..{end_emi} updated.")


@cli.command('mark-paid')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--emi-number', type=int, required=True, help='Installment number')
@click.pass_context
@handle_errors
def mark_paid(ctx, loan_id, emi_number):
    """Marks an installment as paid."""
    _service(ctx).mark_as_paid(loan_id, emi_number)
    click.echo(f"EMI {emi_number} marked as paid.")


@cli.command('regenerate')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.pass_context
@handle_errors
def regenerate(ctx, loan_id):
    """Rebuilds a loan's schedule from its terms."""
    schedule = _service(ctx).regenerate_schedule(loan_id)
    click.echo(f"Schedule regenerated with {len(schedule)} installments.")


@cli.command('delete-loan')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.confirmation_option(prompt='Delete the loan with its schedule and modifications?')
@click.pass_context
@handle_errors
def delete_loan(ctx, loan_id):
    """Deletes a loan with its schedule and modifications."""
    _service(ctx).delete_loan(loan_id)
    click.echo(f"Loan '{loan_id}' deleted successfully.")


@cli.command('export-csv')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--year', type=int, help='Only installments due in this year')
@click.option('--output', type=click.Path(dir_okay=False), help='Output file (default: derived name)')
@click.pass_context
@handle_errors
def export_csv(ctx, loan_id, year, output):
    """Exports a loan's schedule as CSV."""
    text = _service(ctx).export_csv(loan_id, year)
    path = output or csv_filename(loan_id, year)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text + "\n")
    click.echo(f"Schedule exported to {path}")


@cli.command('summary')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.pass_context
@handle_errors
def summary(ctx, loan_id):
    """Shows totals and progress of a loan."""
    figures = _service(ctx).summary(loan_id)
    click.echo(f"EMI: {fmt_amount(figures['emi_amount'], 2)}")
    click.echo(f"Total interest: {fmt_amount(figures['total_interest'], 2)}")
    click.echo(f"Total payment: {fmt_amount(figures['total_payment'], 2)}")
    click.echo(f"Outstanding principal: {fmt_amount(figures['outstanding_principal'], 2)}")
    click.echo(f"Installments paid/remaining: {figures['paid_installments']}/{figures['remaining_installments']}")
    click.echo(f"Remaining interest: {fmt_amount(figures['remaining_interest'], 2)}")
    click.echo(f"Effective annual rate (IRR): {fmt_rate(figures['effective_annual_rate'])}")


if __name__ == "__main__":
    cli()
