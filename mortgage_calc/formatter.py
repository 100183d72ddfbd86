"""Output helpers for the mortgage calculator.

This module provides simple functions to render amortization schedules,
summaries and early repayment outcomes in a tabular text format. Values are
rounded only here, at display time; the engine itself never rounds.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import CombinedSchedule, PaymentPeriod, RepaymentOutcome, Schedule, YearSummary


def print_summary(schedule: Schedule, title: str = "Summary") -> None:
    """Print the aggregate figures of a schedule in a human-readable format."""
    print(title)
    print("-" * 72)
    print(f"Principal          : {schedule.principal:.2f}")
    print(f"Total interest     : {schedule.total_interest:.2f}")
    if schedule.lump_sum:
        print(f"Early repayment    : {schedule.lump_sum:.2f}")
    print(f"Total payment      : {schedule.total_payment:.2f}")
    print(f"First payment      : {schedule.first_payment:.2f}")
    print(f"Last payment       : {schedule.last_payment:.2f}")
    print(f"Payments           : {schedule.term_months}")
    print("-" * 72)


def print_schedule(schedule: Iterable[PaymentPeriod]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = ["Period", "Payment", "Principal", "Interest", "EndBal"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.period),
            f"{entry.payment:.2f}",
            f"{entry.principal_payment:.2f}",
            f"{entry.interest_payment:.2f}",
            f"{entry.ending_balance:.2f}",
        ]
        print("\t".join(row))


def print_yearly_summary(rows: Iterable[YearSummary]) -> None:
    print("Interest by year")
    print(f"{'Year':>4s} {'Interest':>15s} {'Cumulative':>15s} {'Share':>8s}")
    for row in rows:
        print(
            f"{row.year:4d} {row.yearly_interest:15.2f} "
            f"{row.cumulative_interest:15.2f} {row.interest_percentage:7.2f}%"
        )


def print_combined(result: CombinedSchedule) -> None:
    print_summary(result.commercial, "Commercial loan")
    print_summary(result.fund, "Housing fund loan")
    print_summary(result.combined, "Combined loan")


def print_outcome(outcome: RepaymentOutcome) -> None:
    """Print the effect of an early repayment next to the original loan.

    The difference column is ``after - original``; a negative value means the
    repayment made the loan cheaper or shorter.
    """
    print("Early repayment")
    print("=" * 72)
    repayment = outcome.repayment
    print(f"Repayment          : {repayment.amount:.2f} after month {repayment.month}")
    # a payoff only uses the outstanding balance, not the full amount requested
    applied = outcome.after_repayment.lump_sum
    if applied < repayment.amount:
        print(f"Applied            : {applied:.2f} (outstanding balance)")
    print(f"Result             : {outcome.kind.replace('_', ' ')}")
    print(f"Interest saved     : {outcome.interest_saved:.2f}")
    if outcome.months_saved:
        print(f"Term reduction     : {outcome.months_saved} months")
    print(f"New payment        : {outcome.new_payment:.2f}")
    print("=" * 72)
    print(f"{'Metric':20s} {'Original':>15s} {'After':>15s} {'Difference':>15s}")
    rows = [
        ("total_interest", outcome.original.total_interest, outcome.after_repayment.total_interest),
        ("total_payment", outcome.original.total_payment, outcome.after_repayment.total_payment),
        ("payments", outcome.original.term_months, outcome.after_repayment.term_months),
    ]
    for name, before, after in rows:
        print(f"{name:20s} {before:15.2f} {after:15.2f} {after - before:15.2f}")
    print("=" * 72)
