"""Early repayment (overpayment) planning.

Given a computed schedule and a one-time lump sum paid after a chosen month,
``apply_early_repayment`` rebuilds the rest of the schedule. The months up to
and including the repayment month are kept exactly as they were; the months
after it are recomputed from the reduced balance at the loan's original rate,
either keeping the installment (``"term"``) or keeping the end date
(``"installment"``).

A combined loan is recomputed as a single loan at a rate picked with
``rate_option``; see ``apply_combined_early_repayment``.
"""

from __future__ import annotations

import math
from typing import List, Optional

from .data_models import (
    ANNUITY,
    COMMERCIAL_RATE,
    FUND_RATE,
    RATE_OPTIONS,
    REDUCE_INSTALLMENT,
    REDUCE_TERM,
    REPAYMENT_POLICIES,
    WEIGHTED_RATE,
    CombinedLoanSpec,
    CombinedSchedule,
    EarlyRepayment,
    InstallmentReduced,
    LoanSpec,
    PaidOff,
    PaymentPeriod,
    RepaymentOutcome,
    Schedule,
    TermShortened,
)
from .engine import amortize, build_schedule, compute_combined_schedule, validate_loan_spec
from .errors import (
    InvalidEarlyRepayment,
    RepaymentMonthOutOfRange,
    UnsupportedPolicyForConvention,
)
from .logging_config import get_logger

logger = get_logger(__name__)

# Period counts this close to a whole number are float dust, not an extra month.
_PERIOD_EPS = 1e-9


def _validate_event(spec: LoanSpec, schedule: Schedule, event: EarlyRepayment) -> None:
    amount = event.amount
    if (
        isinstance(amount, bool)
        or not isinstance(amount, (int, float))
        or not math.isfinite(amount)
        or amount <= 0
    ):
        raise InvalidEarlyRepayment("Repayment amount must be a positive number", "amount", amount)
    if event.policy not in REPAYMENT_POLICIES:
        raise InvalidEarlyRepayment(
            f"Repayment policy must be one of {', '.join(REPAYMENT_POLICIES)}", "policy", event.policy
        )
    month = event.month
    # the repayment must leave at least one regular period after it
    if isinstance(month, bool) or not isinstance(month, int) or month < 1 or month >= len(schedule):
        raise RepaymentMonthOutOfRange(
            f"Repayment month must be between 1 and {len(schedule) - 1}", "month", month
        )
    if event.policy == REDUCE_TERM and spec.loan_type != ANNUITY:
        raise UnsupportedPolicyForConvention(
            "Shortening the term requires a constant installment (annuity loan)",
            "loan_type",
            spec.loan_type,
        )


def periods_to_repay(balance: float, rate_per_month: float, payment: float) -> int:
    """Return the number of ``payment`` installments needed to retire ``balance``.

    This is the annuity formula solved for ``n``:

        n = -ln(1 - B * i / M) / ln(1 + i)

    rounded up to a whole month. For a zero rate it is simply ``B / M``.
    """
    if balance <= 0:
        return 0
    if rate_per_month == 0:
        exact = balance / payment
    else:
        remaining_ratio = 1 - balance * rate_per_month / payment
        if remaining_ratio <= 0:
            raise ValueError("Payment does not cover the interest on the balance")
        exact = -math.log(remaining_ratio) / math.log(1 + rate_per_month)
    nearest = round(exact)
    if nearest > 0 and abs(exact - nearest) < _PERIOD_EPS:
        return int(nearest)
    return max(1, math.ceil(exact))


def _shortened_tail(
    balance: float, rate_per_month: float, payment: float, count: int, first_period: int
) -> List[PaymentPeriod]:
    """Amortize ``balance`` with a fixed ``payment``; the last period clears the rest."""
    entries: List[PaymentPeriod] = []
    for offset in range(count):
        interest_payment = balance * rate_per_month
        if offset == count - 1:
            principal_payment = balance
            current_payment = balance + interest_payment
            balance = 0.0
        else:
            principal_payment = payment - interest_payment
            current_payment = payment
            balance -= principal_payment
        entries.append(
            PaymentPeriod(
                period=first_period + offset,
                payment=current_payment,
                principal_payment=principal_payment,
                interest_payment=interest_payment,
                ending_balance=max(0.0, balance),
            )
        )
    return entries


def apply_early_repayment(
    spec: LoanSpec, schedule: Schedule, event: EarlyRepayment
) -> RepaymentOutcome:
    """Recompute ``schedule`` after a one-time early repayment.

    Parameters
    ----------
    spec: LoanSpec
        The loan the schedule was computed for. Its monthly rate and loan
        type are used for the recomputation.
    schedule: Schedule
        The schedule before the repayment. Its length is the original number
        of months the savings are measured against.
    event: EarlyRepayment
        When, how much and under which policy the lump sum is paid.

    Returns
    -------
    RepaymentOutcome
        ``PaidOff`` when the lump sum covers the whole outstanding balance,
        otherwise ``TermShortened`` or ``InstallmentReduced`` depending on the
        policy.

    Notes
    -----
    ``"installment"`` re-amortizes the reduced balance over exactly the
    months left (``len(schedule) - month``), not over the remaining term
    rounded up to whole years and cut short afterwards. The two agree when
    the months left are a multiple of 12; otherwise the rounded variant would
    quote a lower payment that leaves part of the balance unpaid at the end.

    On payoff, ``after_repayment.lump_sum`` is the part of the amount that was
    actually needed (the outstanding balance); ``repayment.amount`` keeps the
    amount as requested.

    Raises
    ------
    InvalidLoanSpec
        If ``spec`` is invalid.
    InvalidEarlyRepayment
        If the amount is not positive, the policy is unknown, or under
        ``"term"`` the installment no longer covers the interest on the
        reduced balance (possible when ``spec`` carries a higher rate than
        the one ``schedule`` was built with).
    RepaymentMonthOutOfRange
        If the month is not strictly inside the schedule (the last month has
        no remaining periods to recompute).
    UnsupportedPolicyForConvention
        If ``"term"`` is requested for a decreasing loan, whose installment is
        not constant to begin with.
    """
    validate_loan_spec(spec)
    _validate_event(spec, schedule, event)

    month = event.month
    rate_per_month = spec.monthly_rate
    total_periods = len(schedule)
    kept = schedule.periods[:month]
    outstanding = kept[-1].ending_balance
    balance = max(0.0, outstanding - event.amount)

    if balance <= 0:
        after = build_schedule(kept, schedule.principal, lump_sum=min(event.amount, outstanding))
        logger.info("Repayment of %.2f in month %d pays off the loan", event.amount, month)
        return PaidOff(
            original=schedule,
            after_repayment=after,
            repayment=event,
            periods_saved=total_periods - month,
        )

    if event.policy == REDUCE_TERM:
        payment = schedule.first_payment
        try:
            count = periods_to_repay(balance, rate_per_month, payment)
        except ValueError as exc:
            raise InvalidEarlyRepayment(
                "Installment does not cover the interest on the remaining balance",
                "amount",
                event.amount,
                context={"balance": balance, "payment": payment},
            ) from exc
        tail = _shortened_tail(balance, rate_per_month, payment, count, month + 1)
        after = build_schedule(kept + tuple(tail), schedule.principal, lump_sum=event.amount)
        outcome: RepaymentOutcome = TermShortened(
            original=schedule,
            after_repayment=after,
            repayment=event,
            periods_saved=total_periods - (month + count),
        )
    elif event.policy == REDUCE_INSTALLMENT:
        remaining = total_periods - month
        tail = amortize(balance, rate_per_month, remaining, spec.loan_type, first_period=month + 1)
        after = build_schedule(kept + tuple(tail), schedule.principal, lump_sum=event.amount)
        outcome = InstallmentReduced(
            original=schedule,
            after_repayment=after,
            repayment=event,
            reduced_payment=tail[0].payment,
        )
    else:  # pragma: no cover - rejected by _validate_event
        raise InvalidEarlyRepayment("Unknown repayment policy", "policy", event.policy)

    logger.info(
        "Repayment of %.2f in month %d (%s): %d periods, interest saved %.2f",
        event.amount,
        month,
        event.policy,
        len(after),
        outcome.interest_saved,
    )
    return outcome


def effective_loan_spec(spec: CombinedLoanSpec, rate_option: str = WEIGHTED_RATE) -> LoanSpec:
    """Collapse a combined loan into the single loan used to recompute it.

    The principal is the sum of both parts. ``rate_option`` picks the rate:
    ``"weighted"`` averages both rates weighted by principal, ``"commercial"``
    and ``"fund"`` take the rate of that part.
    """
    if rate_option == WEIGHTED_RATE:
        rate = spec.weighted_rate
    elif rate_option == COMMERCIAL_RATE:
        rate = spec.commercial_rate
    elif rate_option == FUND_RATE:
        rate = spec.fund_rate
    else:
        raise InvalidEarlyRepayment(
            f"Rate option must be one of {', '.join(RATE_OPTIONS)}", "rate_option", rate_option
        )
    return LoanSpec(
        principal=spec.commercial_principal + spec.fund_principal,
        rate=rate,
        term_years=spec.term_years,
        loan_type=spec.loan_type,
    )


def apply_combined_early_repayment(
    spec: CombinedLoanSpec,
    event: EarlyRepayment,
    rate_option: str = WEIGHTED_RATE,
    combined: Optional[CombinedSchedule] = None,
) -> RepaymentOutcome:
    """Apply an early repayment to a combined loan.

    The combined schedule is kept up to the repayment month; the reduced
    balance is then recomputed as one loan at the rate chosen by
    ``rate_option`` (see :func:`effective_loan_spec`). Savings are measured
    against the combined schedule, which is computed unless ``combined`` is
    given.
    """
    if combined is None:
        combined = compute_combined_schedule(spec)
    effective = effective_loan_spec(spec, rate_option)
    logger.debug("Combined loan recomputed at %.4f%% (%s)", effective.rate, rate_option)
    return apply_early_repayment(effective, combined.combined, event)
