"""Shared fixtures for the mortgage calculator tests."""

import logging

import pytest

from mortgage_calc.data_models import ANNUITY, DECREASING, LoanSpec
from mortgage_calc.engine import compute_schedule
from mortgage_calc.logging_config import ROOT_LOGGER


@pytest.fixture
def annuity_spec() -> LoanSpec:
    """1,000,000 at 5 % over 30 years, equal installments."""
    return LoanSpec(principal=1_000_000, rate=5.0, term_years=30, loan_type=ANNUITY)


@pytest.fixture
def decreasing_spec() -> LoanSpec:
    return LoanSpec(principal=600_000, rate=4.2, term_years=20, loan_type=DECREASING)


@pytest.fixture
def annuity_schedule(annuity_spec):
    return compute_schedule(annuity_spec)


@pytest.fixture
def decreasing_schedule(decreasing_spec):
    return compute_schedule(decreasing_spec)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by ``configure_logging`` during a test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
