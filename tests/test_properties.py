"""Property-based tests for schedule and early repayment invariants.

Uses Hypothesis to check the relations that must hold for every valid loan,
whatever its size, rate or term.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mortgage_calc.data_models import (
    ANNUITY,
    DECREASING,
    REDUCE_INSTALLMENT,
    REDUCE_TERM,
    CombinedLoanSpec,
    EarlyRepayment,
    InstallmentReduced,
    LoanSpec,
    PaidOff,
    TermShortened,
)
from mortgage_calc.early_repayment import apply_early_repayment
from mortgage_calc.engine import compute_combined_schedule, compute_schedule

principals = st.floats(min_value=1_000, max_value=10_000_000, allow_nan=False, allow_infinity=False)
rates = st.one_of(st.just(0.0), st.floats(min_value=0.01, max_value=15.0))
terms = st.integers(min_value=1, max_value=30)
loan_types = st.sampled_from([ANNUITY, DECREASING])

loan_specs = st.builds(LoanSpec, principal=principals, rate=rates, term_years=terms, loan_type=loan_types)


@given(spec=loan_specs)
@settings(max_examples=60, deadline=None)
def test_schedule_invariants(spec):
    schedule = compute_schedule(spec)
    assert len(schedule) == spec.total_periods
    assert [p.period for p in schedule] == list(range(1, spec.total_periods + 1))
    assert sum(p.principal_payment for p in schedule) == pytest.approx(spec.principal, rel=1e-7)
    assert schedule.total_interest == pytest.approx(
        schedule.total_payment - spec.principal, rel=1e-7, abs=1e-4
    )
    for p in schedule:
        assert p.principal_payment + p.interest_payment == pytest.approx(p.payment, rel=1e-9)
        assert p.ending_balance >= 0
    balances = [p.ending_balance for p in schedule]
    assert all(a >= b for a, b in zip(balances, balances[1:]))


@given(principal=principals, rate=rates, term=terms)
@settings(max_examples=40, deadline=None)
def test_annuity_payment_is_level(principal, rate, term):
    schedule = compute_schedule(LoanSpec(principal, rate, term, ANNUITY))
    assert len({p.payment for p in schedule}) == 1
    assert schedule.total_payment == pytest.approx(schedule.first_payment * len(schedule), rel=1e-6)


@given(principal=principals, rate=rates, term=terms)
@settings(max_examples=40, deadline=None)
def test_decreasing_principal_is_level(principal, rate, term):
    schedule = compute_schedule(LoanSpec(principal, rate, term, DECREASING))
    assert len({p.principal_payment for p in schedule}) == 1
    assert schedule.first_payment == pytest.approx(principal / (term * 12) + principal * rate / 1200)
    payments = [p.payment for p in schedule]
    assert all(a >= b for a, b in zip(payments, payments[1:]))


@given(
    commercial=principals,
    commercial_rate=rates,
    fund=principals,
    fund_rate=rates,
    term=terms,
    loan_type=loan_types,
)
@settings(max_examples=30, deadline=None)
def test_combined_is_period_sum(commercial, commercial_rate, fund, fund_rate, term, loan_type):
    result = compute_combined_schedule(
        CombinedLoanSpec(commercial, commercial_rate, fund, fund_rate, term, loan_type)
    )
    for total, a, b in zip(result.combined, result.commercial, result.fund):
        assert total.payment == a.payment + b.payment


@given(spec=loan_specs, data=st.data())
@settings(max_examples=80, deadline=None)
def test_early_repayment_invariants(spec, data):
    schedule = compute_schedule(spec)
    month = data.draw(st.integers(min_value=1, max_value=len(schedule) - 1), label="month")
    outstanding = schedule.period(month).ending_balance
    share = data.draw(st.floats(min_value=0.01, max_value=1.2), label="share")
    amount = max(outstanding * share, 0.01)
    policy = REDUCE_TERM if spec.loan_type == ANNUITY else REDUCE_INSTALLMENT
    policy = data.draw(st.sampled_from([policy, REDUCE_INSTALLMENT]), label="policy")

    outcome = apply_early_repayment(spec, schedule, EarlyRepayment(month, amount, policy))
    after = outcome.after_repayment

    assert after.periods[:month] == schedule.periods[:month]
    assert [p.period for p in after] == list(range(1, len(after) + 1))
    assert outcome.interest_saved >= -1e-6
    assert sum(p.principal_payment for p in after) + after.lump_sum == pytest.approx(
        spec.principal, rel=1e-7
    )
    assert after.total_interest == pytest.approx(after.total_payment - spec.principal, rel=1e-7, abs=1e-4)

    if isinstance(outcome, PaidOff):
        assert len(after) == month
        assert outcome.new_payment == 0
        assert outcome.months_saved == len(schedule) - month
    elif isinstance(outcome, TermShortened):
        assert len(after) <= len(schedule)
        assert outcome.months_saved == len(schedule) - len(after)
        assert after.periods[-1].ending_balance == 0.0
    else:
        assert isinstance(outcome, InstallmentReduced)
        assert len(after) == len(schedule)
        assert outcome.new_payment <= schedule.period(month + 1).payment + 1e-6
