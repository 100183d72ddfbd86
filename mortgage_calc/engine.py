"""Core calculation engine for the mortgage calculator.

This module implements the financial logic required to build amortization
schedules for both annuity (equal installment) and decreasing (equal
principal) loans, and to blend two loans that run in parallel over the same
term into one combined schedule. All arithmetic is plain floating point;
nothing is rounded before aggregation.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Iterable, List, Sequence

from .data_models import (
    ANNUITY,
    DECREASING,
    LOAN_TYPES,
    CombinedLoanSpec,
    CombinedSchedule,
    LoanSpec,
    PaymentPeriod,
    Schedule,
)
from .errors import InvalidLoanSpec, SchedulesLengthMismatch
from .logging_config import get_logger

logger = get_logger(__name__)


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_loan_spec(spec: LoanSpec) -> None:
    """Raise ``InvalidLoanSpec`` if ``spec`` cannot be amortized."""
    if not _is_number(spec.principal) or not math.isfinite(spec.principal) or spec.principal <= 0:
        raise InvalidLoanSpec("Principal must be a positive number", "principal", spec.principal)
    if not _is_number(spec.rate) or not math.isfinite(spec.rate) or spec.rate < 0:
        raise InvalidLoanSpec("Interest rate must be zero or positive", "rate", spec.rate)
    if not isinstance(spec.term_years, int) or isinstance(spec.term_years, bool) or spec.term_years <= 0:
        raise InvalidLoanSpec("Term must be a positive whole number of years", "term_years", spec.term_years)
    if spec.loan_type not in LOAN_TYPES:
        raise InvalidLoanSpec(
            f"Loan type must be one of {', '.join(LOAN_TYPES)}", "loan_type", spec.loan_type
        )


def calculate_annuity_payment(principal: float, rate_per_month: float, periods: int) -> float:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if periods <= 0:
        raise ValueError("Number of periods must be positive")
    if rate_per_month == 0:
        return principal / periods
    factor = (1 + rate_per_month) ** periods
    return principal * (rate_per_month * factor) / (factor - 1)


def amortize(
    principal: float,
    rate_per_month: float,
    periods: int,
    loan_type: str,
    first_period: int = 1,
) -> List[PaymentPeriod]:
    """Amortize ``principal`` over ``periods`` months.

    Periods are numbered from ``first_period`` so that a recomputed tail can be
    appended directly to an existing schedule.
    """
    entries: List[PaymentPeriod] = []
    balance = principal

    if loan_type == ANNUITY:
        monthly_payment = calculate_annuity_payment(principal, rate_per_month, periods)
        for offset in range(periods):
            interest_payment = balance * rate_per_month
            principal_payment = monthly_payment - interest_payment
            balance -= principal_payment
            entries.append(
                PaymentPeriod(
                    period=first_period + offset,
                    payment=monthly_payment,
                    principal_payment=principal_payment,
                    interest_payment=interest_payment,
                    ending_balance=max(0.0, balance),
                )
            )
    elif loan_type == DECREASING:
        constant_principal = principal / periods
        for offset in range(periods):
            interest_payment = balance * rate_per_month
            balance -= constant_principal
            entries.append(
                PaymentPeriod(
                    period=first_period + offset,
                    payment=constant_principal + interest_payment,
                    principal_payment=constant_principal,
                    interest_payment=interest_payment,
                    ending_balance=max(0.0, balance),
                )
            )
    else:
        raise InvalidLoanSpec(
            f"Loan type must be one of {', '.join(LOAN_TYPES)}", "loan_type", loan_type
        )
    return entries


def build_schedule(
    periods: Iterable[PaymentPeriod], principal: float, lump_sum: float = 0.0
) -> Schedule:
    """Wrap a sequence of periods into a ``Schedule`` with fresh aggregates.

    The totals are always re-summed from the periods themselves; ``lump_sum``
    is added to ``total_payment`` only.
    """
    entries = tuple(periods)
    total_interest = sum(p.interest_payment for p in entries)
    total_payment = sum(p.payment for p in entries) + lump_sum
    return Schedule(
        periods=entries,
        principal=principal,
        total_interest=total_interest,
        total_payment=total_payment,
        first_payment=entries[0].payment if entries else 0.0,
        last_payment=entries[-1].payment if entries else 0.0,
        lump_sum=lump_sum,
    )


def compute_schedule(spec: LoanSpec) -> Schedule:
    """Compute the full amortization schedule for a loan.

    Parameters
    ----------
    spec: LoanSpec
        The loan to amortize.

    Returns
    -------
    Schedule
        One period per month of the term with totals for interest and
        payments and the first and last installment.

    Raises
    ------
    InvalidLoanSpec
        If the principal or term is not positive, the rate is negative or
        the loan type is unknown.
    """
    validate_loan_spec(spec)
    entries = amortize(spec.principal, spec.monthly_rate, spec.total_periods, spec.loan_type)
    schedule = build_schedule(entries, float(spec.principal))
    logger.debug(
        "Computed %s schedule: principal=%s rate=%s%% periods=%d total_interest=%.2f",
        spec.loan_type,
        spec.principal,
        spec.rate,
        len(schedule),
        schedule.total_interest,
    )
    return schedule


def sum_schedules(first: Schedule, second: Schedule) -> Schedule:
    """Add two schedules together period by period.

    Raises
    ------
    SchedulesLengthMismatch
        If the schedules do not have the same number of periods.
    """
    if len(first) != len(second):
        raise SchedulesLengthMismatch(
            "Schedules must have the same number of periods to be combined",
            context={"first_length": len(first), "second_length": len(second)},
        )
    entries = [
        PaymentPeriod(
            period=a.period,
            payment=a.payment + b.payment,
            principal_payment=a.principal_payment + b.principal_payment,
            interest_payment=a.interest_payment + b.interest_payment,
            ending_balance=a.ending_balance + b.ending_balance,
        )
        for a, b in zip(first.periods, second.periods)
    ]
    return build_schedule(
        entries,
        first.principal + second.principal,
        lump_sum=first.lump_sum + second.lump_sum,
    )


_SHARED_FIELDS: Sequence[str] = ("term_years", "loan_type")


def _compute_part(spec: LoanSpec, prefix: str) -> Schedule:
    try:
        return compute_schedule(spec)
    except InvalidLoanSpec as exc:
        if exc.field in _SHARED_FIELDS:
            raise
        raise InvalidLoanSpec(exc.message, f"{prefix}_{exc.field}", exc.value) from exc


def compute_combined_schedule(spec: CombinedLoanSpec) -> CombinedSchedule:
    """Compute a combined (commercial + housing fund) loan.

    Both parts are amortized independently with the shared term and loan type
    and then summed month by month into the ``combined`` schedule.
    """
    commercial = _compute_part(spec.commercial_spec(), "commercial")
    fund = _compute_part(spec.fund_spec(), "fund")
    combined = sum_schedules(commercial, fund)
    logger.debug(
        "Combined %d-period schedules: commercial=%s fund=%s",
        len(combined),
        spec.commercial_principal,
        spec.fund_principal,
    )
    return CombinedSchedule(commercial=commercial, fund=fund, combined=combined)
