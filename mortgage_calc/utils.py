"""Utility functions for the mortgage calculator.

This module provides helpers for parsing user input (amounts with ``k``/``m``
shorthand, percentages) and for turning computed schedules and outcomes into
plain dictionaries for JSON/CSV export and the web API.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from .data_models import PaymentPeriod, RepaymentOutcome, Schedule, YearSummary
from .summary import yearly_interest_summary


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("1,000,000") and
    shorthand with ``k``/``m`` suffixes (e.g. "500k" meaning 500_000).

    Raises
    ------
    ValueError
        If the string is not a number.
    """
    cleaned = str(value).strip().lower().replace(",", "").replace("_", "")
    factor = 1.0
    if cleaned.endswith("k"):
        factor = 1_000.0
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = 1_000_000.0
        cleaned = cleaned[:-1]
    try:
        return float(cleaned) * factor
    except ValueError as exc:
        raise ValueError(f"Invalid amount: {value}") from exc


def parse_rate(value: str) -> float:
    """Parse an annual interest rate given in percent ("4.9" or "4.9%")."""
    cleaned = str(value).strip()
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1]
    try:
        return float(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid interest rate: {value}") from exc


def period_to_dict(entry: PaymentPeriod) -> Dict[str, Any]:
    return {
        "period": entry.period,
        "payment": entry.payment,
        "principal": entry.principal_payment,
        "interest": entry.interest_payment,
        "balance": entry.ending_balance,
    }


def schedule_to_rows(schedule: Schedule) -> List[Dict[str, Any]]:
    return [period_to_dict(entry) for entry in schedule.periods]


def schedule_summary(schedule: Schedule) -> Dict[str, Any]:
    """Aggregate figures of a schedule as a JSON-serialisable dict."""
    return {
        "principal": schedule.principal,
        "total_interest": schedule.total_interest,
        "total_payment": schedule.total_payment,
        "first_payment": schedule.first_payment,
        "last_payment": schedule.last_payment,
        "lump_sum": schedule.lump_sum,
        "term_months": schedule.term_months,
    }


def yearly_summary_rows(schedule: Schedule, total_interest: float) -> List[Dict[str, Any]]:
    rows: List[YearSummary] = list(yearly_interest_summary(schedule, total_interest))
    return [asdict(row) for row in rows]


def outcome_to_dict(outcome: RepaymentOutcome, include_schedules: bool = True) -> Dict[str, Any]:
    """Serialize an early repayment outcome, tagged with its ``kind``."""
    data: Dict[str, Any] = {
        "kind": outcome.kind,
        "repayment": asdict(outcome.repayment),
        "interest_saved": outcome.interest_saved,
        "months_saved": outcome.months_saved,
        "new_payment": outcome.new_payment,
        "original": schedule_summary(outcome.original),
        "after_repayment": schedule_summary(outcome.after_repayment),
    }
    if include_schedules:
        data["original_schedule"] = schedule_to_rows(outcome.original)
        data["after_repayment_schedule"] = schedule_to_rows(outcome.after_repayment)
    return data
