"""Yearly interest statistics derived from a schedule.

Borrowers are usually surprised by how much of the total interest falls into
the first few years of an annuity loan; this module folds a schedule into
per-year interest, the running total and its share of the lifetime interest.
"""

from __future__ import annotations

from typing import Iterator, Sequence

from .data_models import PaymentPeriod, Schedule, YearSummary

DEFAULT_SUMMARY_YEARS = 5


class YearlyInterestSummary:
    """Lazily computed yearly interest figures for the first years of a loan.

    Iterating produces at most ``max_years`` :class:`YearSummary` entries and
    stops early when the schedule ends. Every iteration restarts the fold from
    the first period, so the object can be consumed any number of times.
    """

    def __init__(
        self,
        periods: Sequence[PaymentPeriod],
        total_interest: float,
        max_years: int = DEFAULT_SUMMARY_YEARS,
    ) -> None:
        self._periods = periods
        self._total_interest = total_interest
        self._max_years = max_years

    def __iter__(self) -> Iterator[YearSummary]:
        periods = self._periods
        cumulative = 0.0
        for year in range(1, self._max_years + 1):
            start = (year - 1) * 12
            if start >= len(periods):
                return
            end = min(year * 12, len(periods))
            yearly = sum(p.interest_payment for p in periods[start:end])
            cumulative += yearly
            if self._total_interest > 0:
                percentage = cumulative / self._total_interest * 100
            else:
                percentage = 0.0
            yield YearSummary(
                year=year,
                yearly_interest=yearly,
                cumulative_interest=cumulative,
                interest_percentage=percentage,
            )

    def __len__(self) -> int:
        full_years = -(-len(self._periods) // 12)
        return max(0, min(self._max_years, full_years))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"


def yearly_interest_summary(
    schedule: Schedule,
    total_interest: float,
    max_years: int = DEFAULT_SUMMARY_YEARS,
) -> YearlyInterestSummary:
    """Summarize interest for the first ``max_years`` years of ``schedule``.

    ``total_interest`` is passed separately so that the percentages of an
    early-repayment schedule can be expressed against either the original or
    the new lifetime interest.
    """
    return YearlyInterestSummary(schedule.periods, total_interest, max_years)
