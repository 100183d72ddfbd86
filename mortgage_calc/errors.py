"""Exceptions raised by the mortgage calculator.

Every failure in the calculator is an input-contract violation, so all of them
derive from ``MortgageCalcError`` (itself a ``ValueError``) and carry the name
and value of the offending field for the caller to correct the request.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MortgageCalcError(ValueError):
    """Base exception for all calculator errors.

    Attributes
    ----------
    message: str
        Human-readable error description.
    field: str or None
        Name of the input field that caused the error.
    value: Any
        The offending value.
    context: dict
        Any further details (e.g. both lengths of mismatched schedules).
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value
        self.context = context or {}

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        details = []
        if self.field is not None:
            details.append(f"field={self.field}")
            details.append(f"value={self.value!r}")
        details.extend(f"{k}={v!r}" for k, v in self.context.items())
        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message": self.message,
            "field": self.field,
            "value": self.value,
        }


class InvalidLoanSpec(MortgageCalcError):
    """Non-positive principal or term, negative rate or unknown loan type."""


class RepaymentMonthOutOfRange(MortgageCalcError):
    """The repayment month does not lie strictly inside the schedule."""


class SchedulesLengthMismatch(MortgageCalcError):
    """Two schedules to be summed period by period differ in length."""


class UnsupportedPolicyForConvention(MortgageCalcError):
    """Term shortening was requested for a loan without a level payment."""


class InvalidEarlyRepayment(MortgageCalcError):
    """Non-positive repayment amount or unknown repayment policy."""
