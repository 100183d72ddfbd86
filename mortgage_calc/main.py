"""Command‑line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi‑command interface.
Users can compute full amortization schedules, view summaries, blend a
commercial and a housing fund loan, or see what a one-time early repayment
does to a loan. Results can be printed to the terminal or exported to
JSON/CSV files.

Calculation errors (an invalid loan, a repayment month outside the term, ...)
end the command with exit code 1 and a message naming the error kind and the
offending field.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

import click

from .data_models import LOAN_TYPES, RATE_OPTIONS, REPAYMENT_POLICIES, CombinedLoanSpec, EarlyRepayment, LoanSpec, Schedule
from .early_repayment import apply_combined_early_repayment, apply_early_repayment
from .engine import compute_combined_schedule, compute_schedule
from .errors import MortgageCalcError
from .formatter import print_combined, print_outcome, print_schedule, print_summary, print_yearly_summary
from .logging_config import configure_logging, get_logger
from .summary import yearly_interest_summary
from .utils import (
    outcome_to_dict,
    parse_amount,
    parse_rate,
    schedule_summary,
    schedule_to_rows,
    yearly_summary_rows,
)

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")

DEFAULT_MAX_ROWS = 120


def _amount(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _rate(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return parse_rate(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _calculate(func: Callable[..., T], *args: Any) -> T:
    """Run an engine call, turning calculation errors into a click failure."""
    try:
        return func(*args)
    except MortgageCalcError as exc:
        logger.debug("Calculation failed: %s", exc, exc_info=True)
        raise click.ClickException(f"{exc.kind}: {exc}") from exc


def loan_options(func: F) -> F:
    """Attach the options describing a single loan to a command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, callback=_amount, help="Loan amount (e.g. 1000000, 800k, 1.2m)"),
        click.option("--rate", "-r", "rate", required=True, callback=_rate, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in years"),
        click.option("--type", "loan_type", type=click.Choice(LOAN_TYPES), default=LOAN_TYPES[0], show_default=True, help="Installment type"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    """Export a serialisable result to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: Schedule) -> None:
    """Export schedule to a CSV file."""
    header = ["Period", "Payment", "Principal", "Interest", "Ending_Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule.periods:
            writer.writerow([e.period, e.payment, e.principal_payment, e.interest_payment, e.ending_balance])


def _export(output: str, data: Dict[str, Any], schedule: Optional[Schedule] = None) -> None:
    path = Path(output)
    suffix = path.suffix.lower()
    if suffix == ".json":
        export_to_json(path, data)
    elif suffix == ".csv" and schedule is not None:
        export_to_csv(path, schedule)
    else:
        allowed = ".json or .csv" if schedule is not None else ".json"
        raise click.BadParameter(f"Unsupported output format; use {allowed}", param_hint="--output")
    click.echo(f"Results exported to {path}")


@click.group()
@click.option(
    "--log-level",
    "log_level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (defaults to $MORTGAGE_CALC_LOG_LEVEL or WARNING)",
)
def cli(log_level: Optional[str]) -> None:
    """A command‑line mortgage calculator with early repayment planning."""
    configure_logging(level=log_level)


@cli.command()
@loan_options
@click.option("--rows", "rows", type=int, default=DEFAULT_MAX_ROWS, show_default=True, help="Maximum number of rows to print")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(principal: float, rate: float, term: int, loan_type: str, rows: int, output: Optional[str]) -> None:
    """Compute and print the full amortization schedule."""
    spec = LoanSpec(principal=principal, rate=rate, term_years=term, loan_type=loan_type)
    result = _calculate(compute_schedule, spec)
    if output:
        _export(output, {"summary": schedule_summary(result), "schedule": schedule_to_rows(result)}, result)
        return
    print_summary(result)
    # Limit schedule length printed to avoid flooding the terminal
    if len(result) > rows:
        click.echo(f"Schedule has {len(result)} rows; showing first {rows} rows.")
    print_schedule(result.periods[:rows])


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(principal: float, rate: float, term: int, loan_type: str, output: Optional[str]) -> None:
    """Compute and print only the summary metrics for a loan."""
    spec = LoanSpec(principal=principal, rate=rate, term_years=term, loan_type=loan_type)
    result = _calculate(compute_schedule, spec)
    if output:
        _export(
            output,
            {
                "summary": schedule_summary(result),
                "yearly_interest": yearly_summary_rows(result, result.total_interest),
            },
        )
        return
    print_summary(result)
    print_yearly_summary(yearly_interest_summary(result, result.total_interest))


@cli.command()
@click.option("--commercial", "commercial", required=True, callback=_amount, help="Commercial loan amount")
@click.option("--commercial-rate", "commercial_rate", required=True, callback=_rate, help="Commercial annual rate (percent)")
@click.option("--fund", "fund", required=True, callback=_amount, help="Housing fund loan amount")
@click.option("--fund-rate", "fund_rate", required=True, callback=_rate, help="Housing fund annual rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Shared loan term in years")
@click.option("--type", "loan_type", type=click.Choice(LOAN_TYPES), default=LOAN_TYPES[0], show_default=True, help="Installment type")
@click.option("--month", "month", type=int, help="Month after which an early repayment is made")
@click.option("--amount", "amount", callback=_amount, help="Early repayment amount")
@click.option("--policy", "policy", type=click.Choice(REPAYMENT_POLICIES), default=REPAYMENT_POLICIES[0], show_default=True, help="'term' keeps the payment, 'installment' keeps the end date")
@click.option("--rate-option", "rate_option", type=click.Choice(RATE_OPTIONS), default=RATE_OPTIONS[0], show_default=True, help="Rate used to recompute the loan after the repayment")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def combined(
    commercial: float,
    commercial_rate: float,
    fund: float,
    fund_rate: float,
    term: int,
    loan_type: str,
    month: Optional[int],
    amount: Optional[float],
    policy: str,
    rate_option: str,
    output: Optional[str],
) -> None:
    """Compute a combined commercial + housing fund loan.

    With ``--month`` and ``--amount`` the effect of an early repayment on the
    combined loan is shown as well.
    """
    if (month is None) != (amount is None):
        raise click.UsageError("--month and --amount must be given together")
    spec = CombinedLoanSpec(
        commercial_principal=commercial,
        commercial_rate=commercial_rate,
        fund_principal=fund,
        fund_rate=fund_rate,
        term_years=term,
        loan_type=loan_type,
    )
    result = _calculate(compute_combined_schedule, spec)
    outcome = None
    if month is not None:
        event = EarlyRepayment(month=month, amount=amount, policy=policy)
        outcome = _calculate(apply_combined_early_repayment, spec, event, rate_option, result)
    if output:
        data = {
            "commercial": schedule_summary(result.commercial),
            "fund": schedule_summary(result.fund),
            "combined": schedule_summary(result.combined),
            "schedule": schedule_to_rows(result.combined),
        }
        if outcome is not None:
            data["early_repayment"] = outcome_to_dict(outcome, include_schedules=False)
            data["early_repayment"]["rate_option"] = rate_option
        _export(output, data, result.combined)
        return
    print_combined(result)
    print_yearly_summary(yearly_interest_summary(result.combined, result.combined.total_interest))
    if outcome is not None:
        click.echo(f"Recomputed at {rate_option} rate")
        print_outcome(outcome)
        print_summary(outcome.after_repayment, "After early repayment")


@cli.command()
@loan_options
@click.option("--month", "month", required=True, type=int, help="Month after which the lump sum is paid")
@click.option("--amount", "amount", required=True, callback=_amount, help="Early repayment amount")
@click.option("--policy", "policy", type=click.Choice(REPAYMENT_POLICIES), default=REPAYMENT_POLICIES[0], show_default=True, help="'term' keeps the payment, 'installment' keeps the end date")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def repay(
    principal: float,
    rate: float,
    term: int,
    loan_type: str,
    month: int,
    amount: float,
    policy: str,
    output: Optional[str],
) -> None:
    """Show the effect of a one-time early repayment."""
    spec = LoanSpec(principal=principal, rate=rate, term_years=term, loan_type=loan_type)
    original = _calculate(compute_schedule, spec)
    event = EarlyRepayment(month=month, amount=amount, policy=policy)
    outcome = _calculate(apply_early_repayment, spec, original, event)
    if output:
        _export(output, outcome_to_dict(outcome))
        return
    print_outcome(outcome)
    print_summary(outcome.original, "Original loan")
    print_summary(outcome.after_repayment, "After early repayment")


if __name__ == "__main__":
    cli()
