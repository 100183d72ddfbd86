"""JSON API exposing the mortgage calculator over HTTP.

Every endpoint takes a JSON body, runs one calculation and returns the result
as JSON. Calculation errors become ``400`` responses carrying the error kind,
the offending field and its value so a front end can show them next to the
form input.
"""

import os
from typing import Any, Dict, Mapping, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import BadRequest

from mortgage_calc.data_models import (
    ANNUITY,
    REDUCE_TERM,
    WEIGHTED_RATE,
    CombinedLoanSpec,
    EarlyRepayment,
    LoanSpec,
)
from mortgage_calc.early_repayment import apply_combined_early_repayment, apply_early_repayment
from mortgage_calc.engine import compute_combined_schedule, compute_schedule
from mortgage_calc.errors import MortgageCalcError
from mortgage_calc.logging_config import configure_logging, get_logger
from mortgage_calc.utils import (
    outcome_to_dict,
    parse_amount,
    parse_rate,
    schedule_summary,
    schedule_to_rows,
    yearly_summary_rows,
)

logger = get_logger(__name__)


def _number(payload: Mapping[str, Any], key: str, parser=parse_amount) -> float:
    if key not in payload:
        raise BadRequest(f"Missing field: {key}")
    value = payload[key]
    if isinstance(value, bool):
        raise BadRequest(f"Invalid value for {key}: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return parser(value)
    except ValueError as exc:
        raise BadRequest(f"Invalid value for {key}: {value!r}") from exc


def _integer(payload: Mapping[str, Any], key: str) -> int:
    if key not in payload:
        raise BadRequest(f"Missing field: {key}")
    value = payload[key]
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    # anything else is left for the engine to reject with its field name
    return value


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return payload


def _loan_from(payload: Mapping[str, Any]) -> LoanSpec:
    return LoanSpec(
        principal=_number(payload, "principal"),
        rate=_number(payload, "rate", parse_rate),
        term_years=_integer(payload, "term_years"),
        loan_type=payload.get("loan_type", ANNUITY),
    )


def _event_from(payload: Mapping[str, Any]) -> EarlyRepayment:
    return EarlyRepayment(
        month=_integer(payload, "month"),
        amount=_number(payload, "amount"),
        policy=payload.get("policy", REDUCE_TERM),
    )


def _preview(rows: list, full: bool, max_rows: int) -> Dict[str, Any]:
    if full or len(rows) <= max_rows:
        return {"schedule": rows}
    return {"schedule": rows[:max_rows], "truncated": len(rows) - max_rows}


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """Build the Flask application.

    ``MAX_PREVIEW_ROWS`` (environment: ``MORTGAGE_CALC_MAX_PREVIEW_ROWS``)
    limits how many schedule rows are returned unless ``?full=1`` is given.
    """
    app = Flask(__name__)
    app.config["MAX_PREVIEW_ROWS"] = int(os.environ.get("MORTGAGE_CALC_MAX_PREVIEW_ROWS", "120"))
    if config:
        app.config.update(config)

    def wants_full() -> bool:
        return request.args.get("full") == "1"

    @app.errorhandler(MortgageCalcError)
    def calculation_error(exc: MortgageCalcError):
        logger.info("Rejected %s request: %s", request.path, exc)
        return jsonify(exc.to_dict()), 400

    @app.errorhandler(BadRequest)
    def bad_request(exc: BadRequest):
        return jsonify({"error": "BadRequest", "message": exc.description}), 400

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/api/schedule")
    def schedule():
        spec = _loan_from(_json_body())
        result = compute_schedule(spec)
        body = {
            "summary": schedule_summary(result),
            "yearly_interest": yearly_summary_rows(result, result.total_interest),
        }
        body.update(_preview(schedule_to_rows(result), wants_full(), app.config["MAX_PREVIEW_ROWS"]))
        return jsonify(body)

    @app.post("/api/combined")
    def combined():
        payload = _json_body()
        spec = CombinedLoanSpec(
            commercial_principal=_number(payload, "commercial_principal"),
            commercial_rate=_number(payload, "commercial_rate", parse_rate),
            fund_principal=_number(payload, "fund_principal"),
            fund_rate=_number(payload, "fund_rate", parse_rate),
            term_years=_integer(payload, "term_years"),
            loan_type=payload.get("loan_type", ANNUITY),
        )
        result = compute_combined_schedule(spec)
        body = {
            "commercial": schedule_summary(result.commercial),
            "fund": schedule_summary(result.fund),
            "combined": schedule_summary(result.combined),
            "yearly_interest": yearly_summary_rows(result.combined, result.combined.total_interest),
        }
        repayment = payload.get("early_repayment")
        if repayment is not None:
            if not isinstance(repayment, dict):
                raise BadRequest("Field 'early_repayment' must be a JSON object")
            rate_option = repayment.get("rate_option", WEIGHTED_RATE)
            outcome = apply_combined_early_repayment(spec, _event_from(repayment), rate_option, result)
            body["early_repayment"] = outcome_to_dict(outcome, include_schedules=wants_full())
            body["early_repayment"]["rate_option"] = rate_option
        body.update(_preview(schedule_to_rows(result.combined), wants_full(), app.config["MAX_PREVIEW_ROWS"]))
        return jsonify(body)

    @app.post("/api/early-repayment")
    def early_repayment():
        payload = _json_body()
        loan = payload.get("loan")
        if not isinstance(loan, dict):
            raise BadRequest("Field 'loan' must be a JSON object")
        spec = _loan_from(loan)
        original = compute_schedule(spec)
        outcome = apply_early_repayment(spec, original, _event_from(payload))
        return jsonify(outcome_to_dict(outcome, include_schedules=wants_full()))

    return app


if __name__ == "__main__":
    configure_logging()
    print("Starting Mortgage Calculator API...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
