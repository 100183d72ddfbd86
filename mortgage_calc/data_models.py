"""Data models for the mortgage calculator.

This module defines dataclasses representing the entities used by the
calculator: loan specifications (single and combined), individual schedule
periods, complete schedules, early repayment events and their outcomes. All of
them are frozen so a computed schedule can be handed to any number of
consumers without being changed underneath them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Repayment conventions
ANNUITY = "annuity"  # level payment: the total installment stays constant
DECREASING = "decreasing"  # level principal: the installment shrinks over time
LOAN_TYPES = (ANNUITY, DECREASING)

# Early repayment policies
REDUCE_TERM = "term"  # keep the installment, pay off sooner
REDUCE_INSTALLMENT = "installment"  # keep the end date, pay less each month
REPAYMENT_POLICIES = (REDUCE_TERM, REDUCE_INSTALLMENT)

# Rate used to recompute a combined loan after an early repayment
WEIGHTED_RATE = "weighted"  # principal-weighted average of both rates
COMMERCIAL_RATE = "commercial"
FUND_RATE = "fund"
RATE_OPTIONS = (WEIGHTED_RATE, COMMERCIAL_RATE, FUND_RATE)


@dataclass(frozen=True)
class LoanSpec:
    """Inputs describing a single loan.

    Attributes
    ----------
    principal: float
        The disbursed amount.
    rate: float
        Annual nominal interest rate in percent (``5.0`` means 5 %).
    term_years: int
        Loan term in whole years. Payments are monthly.
    loan_type: str
        ``"annuity"`` for equal installments or ``"decreasing"`` for equal
        principal repayments.
    """

    principal: float
    rate: float
    term_years: int
    loan_type: str = ANNUITY

    @property
    def monthly_rate(self) -> float:
        return self.rate / 100 / 12

    @property
    def total_periods(self) -> int:
        return self.term_years * 12


@dataclass(frozen=True)
class PaymentPeriod:
    """One month of an amortization schedule."""

    period: int
    payment: float
    principal_payment: float
    interest_payment: float
    ending_balance: float


@dataclass(frozen=True)
class Schedule:
    """An amortization schedule together with its aggregates.

    ``total_payment`` includes ``lump_sum``, the one-time early repayment made
    outside the regular installments (zero for an untouched schedule), so that
    ``total_payment - principal`` is always the interest paid.
    """

    periods: Tuple[PaymentPeriod, ...]
    principal: float
    total_interest: float
    total_payment: float
    first_payment: float
    last_payment: float
    lump_sum: float = 0.0

    def __len__(self) -> int:
        return len(self.periods)

    def __iter__(self):
        return iter(self.periods)

    @property
    def term_months(self) -> int:
        return len(self.periods)

    def period(self, number: int) -> PaymentPeriod:
        """Return the period with the given 1-based number."""
        if number < 1 or number > len(self.periods):
            raise IndexError(f"Period {number} is outside 1..{len(self.periods)}")
        return self.periods[number - 1]


@dataclass(frozen=True)
class CombinedLoanSpec:
    """Two loans amortized in parallel over the same term.

    The commercial part carries a market rate; the fund part is the
    subsidized (housing fund) loan. Both share ``term_years`` and
    ``loan_type``.
    """

    commercial_principal: float
    commercial_rate: float
    fund_principal: float
    fund_rate: float
    term_years: int
    loan_type: str = ANNUITY

    def commercial_spec(self) -> LoanSpec:
        return LoanSpec(
            principal=self.commercial_principal,
            rate=self.commercial_rate,
            term_years=self.term_years,
            loan_type=self.loan_type,
        )

    def fund_spec(self) -> LoanSpec:
        return LoanSpec(
            principal=self.fund_principal,
            rate=self.fund_rate,
            term_years=self.term_years,
            loan_type=self.loan_type,
        )

    @property
    def weighted_rate(self) -> float:
        total = self.commercial_principal + self.fund_principal
        return (self.commercial_rate * self.commercial_principal + self.fund_rate * self.fund_principal) / total


@dataclass(frozen=True)
class CombinedSchedule:
    commercial: Schedule
    fund: Schedule
    combined: Schedule


@dataclass(frozen=True)
class EarlyRepayment:
    """A one-time extra payment applied to the principal.

    Attributes
    ----------
    month: int
        The 1-based period after which the repayment is made.
    amount: float
        The lump sum applied against the outstanding principal.
    policy: str
        ``"term"`` keeps the installment and shortens the loan; ``"installment"``
        keeps the end date and re-amortizes the balance into a lower payment.
    """

    month: int
    amount: float
    policy: str = REDUCE_TERM


@dataclass(frozen=True)
class RepaymentOutcome:
    """Schedules before and after an early repayment.

    Concrete results are one of :class:`TermShortened`,
    :class:`InstallmentReduced` or :class:`PaidOff`; each variant only carries
    the figure that is meaningful for it.
    """

    original: Schedule
    after_repayment: Schedule
    repayment: EarlyRepayment

    kind = "outcome"

    @property
    def interest_saved(self) -> float:
        return self.original.total_interest - self.after_repayment.total_interest

    @property
    def months_saved(self) -> int:
        return 0

    @property
    def new_payment(self) -> float:
        return self.original.first_payment


@dataclass(frozen=True)
class TermShortened(RepaymentOutcome):
    """The installment stays the same and the loan ends earlier."""

    periods_saved: int = 0

    kind = "term_shortened"

    @property
    def months_saved(self) -> int:
        return self.periods_saved


@dataclass(frozen=True)
class InstallmentReduced(RepaymentOutcome):
    """The end date stays the same and the installment drops."""

    reduced_payment: float = 0.0

    kind = "installment_reduced"

    @property
    def new_payment(self) -> float:
        return self.reduced_payment


@dataclass(frozen=True)
class PaidOff(RepaymentOutcome):
    """The repayment retired the whole outstanding balance."""

    periods_saved: int = 0

    kind = "paid_off"

    @property
    def months_saved(self) -> int:
        return self.periods_saved

    @property
    def new_payment(self) -> float:
        return 0.0


@dataclass(frozen=True)
class YearSummary:
    """Interest accumulated in one loan year."""

    year: int
    yearly_interest: float
    cumulative_interest: float
    interest_percentage: float = 0.0
