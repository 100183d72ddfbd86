import pytest

from mortgage_calc_web.app import create_app

LOAN = {"principal": 1_000_000, "rate": 5.0, "term_years": 30, "loan_type": "annuity"}


@pytest.fixture
def client():
    app = create_app({"TESTING": True, "MAX_PREVIEW_ROWS": 24})
    return app.test_client()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_schedule_preview(client):
    response = client.post("/api/schedule", json=LOAN)
    assert response.status_code == 200
    data = response.get_json()
    assert data["summary"]["first_payment"] == pytest.approx(5368.22, abs=0.01)
    assert data["summary"]["term_months"] == 360
    assert len(data["schedule"]) == 24
    assert data["truncated"] == 336
    assert [row["year"] for row in data["yearly_interest"]] == [1, 2, 3, 4, 5]


def test_schedule_full(client):
    response = client.post("/api/schedule?full=1", json={**LOAN, "principal": "1m", "rate": "5%"})
    assert response.status_code == 200
    data = response.get_json()
    assert len(data["schedule"]) == 360
    assert "truncated" not in data


def test_schedule_invalid_loan(client):
    response = client.post("/api/schedule", json={**LOAN, "principal": -5})
    assert response.status_code == 400
    data = response.get_json()
    assert data["error"] == "InvalidLoanSpec"
    assert data["field"] == "principal"
    assert data["value"] == -5


def test_schedule_missing_field(client):
    response = client.post("/api/schedule", json={"principal": 100_000, "rate": 3.0})
    assert response.status_code == 400
    assert response.get_json() == {"error": "BadRequest", "message": "Missing field: term_years"}


def test_schedule_requires_json_object(client):
    response = client.post("/api/schedule", data="not json", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["error"] == "BadRequest"


def test_combined(client):
    payload = {
        "commercial_principal": 800_000,
        "commercial_rate": 3.0,
        "fund_principal": 600_000,
        "fund_rate": 2.6,
        "term_years": 30,
    }
    response = client.post("/api/combined", json=payload)
    assert response.status_code == 200
    data = response.get_json()
    assert data["combined"]["first_payment"] == pytest.approx(
        data["commercial"]["first_payment"] + data["fund"]["first_payment"]
    )
    assert len(data["schedule"]) == 24


def test_combined_invalid_part(client):
    payload = {
        "commercial_principal": 800_000,
        "commercial_rate": 3.0,
        "fund_principal": 0,
        "fund_rate": 2.6,
        "term_years": 30,
    }
    response = client.post("/api/combined", json=payload)
    assert response.status_code == 400
    assert response.get_json()["field"] == "fund_principal"


def test_early_repayment(client):
    payload = {"loan": LOAN, "month": 60, "amount": 200_000, "policy": "term"}
    response = client.post("/api/early-repayment", json=payload)
    assert response.status_code == 200
    data = response.get_json()
    assert data["kind"] == "term_shortened"
    assert data["months_saved"] > 0
    assert data["interest_saved"] > 0
    assert data["after_repayment"]["term_months"] == 360 - data["months_saved"]
    assert "after_repayment_schedule" not in data


def test_early_repayment_full_schedules(client):
    payload = {"loan": LOAN, "month": 60, "amount": 200_000, "policy": "installment"}
    response = client.post("/api/early-repayment?full=1", json=payload)
    data = response.get_json()
    assert data["kind"] == "installment_reduced"
    assert len(data["after_repayment_schedule"]) == 360
    assert data["after_repayment_schedule"][:60] == data["original_schedule"][:60]


def test_early_repayment_paid_off(client):
    payload = {"loan": LOAN, "month": 12, "amount": 2_000_000}
    data = client.post("/api/early-repayment", json=payload).get_json()
    assert data["kind"] == "paid_off"
    assert data["new_payment"] == 0
    assert data["months_saved"] == 348


def test_early_repayment_out_of_range(client):
    payload = {"loan": LOAN, "month": 360, "amount": 1_000}
    response = client.post("/api/early-repayment", json=payload)
    assert response.status_code == 400
    data = response.get_json()
    assert data["error"] == "RepaymentMonthOutOfRange"
    assert data["field"] == "month"


def test_early_repayment_requires_loan(client):
    response = client.post("/api/early-repayment", json={"month": 12, "amount": 1_000})
    assert response.status_code == 400
    assert response.get_json()["error"] == "BadRequest"


COMBINED = {
    "commercial_principal": 800_000,
    "commercial_rate": 3.0,
    "fund_principal": 600_000,
    "fund_rate": 2.6,
    "term_years": 30,
}


@pytest.mark.parametrize("rate_option", ["weighted", "commercial", "fund"])
def test_combined_early_repayment(client, rate_option):
    payload = {
        **COMBINED,
        "early_repayment": {"month": 60, "amount": 100_000, "policy": "term", "rate_option": rate_option},
    }
    response = client.post("/api/combined", json=payload)
    assert response.status_code == 200
    data = response.get_json()
    repayment = data["early_repayment"]
    assert repayment["kind"] == "term_shortened"
    assert repayment["rate_option"] == rate_option
    assert repayment["original"] == data["combined"]
    assert repayment["interest_saved"] > 0
    assert "after_repayment_schedule" not in repayment


def test_combined_early_repayment_defaults_to_weighted(client):
    payload = {**COMBINED, "early_repayment": {"month": 60, "amount": 100_000}}
    data = client.post("/api/combined?full=1", json=payload).get_json()
    repayment = data["early_repayment"]
    assert repayment["rate_option"] == "weighted"
    assert repayment["after_repayment_schedule"][:60] == data["schedule"][:60]


def test_combined_early_repayment_unknown_rate_option(client):
    payload = {**COMBINED, "early_repayment": {"month": 60, "amount": 100_000, "rate_option": "best"}}
    response = client.post("/api/combined", json=payload)
    assert response.status_code == 400
    data = response.get_json()
    assert data["error"] == "InvalidEarlyRepayment"
    assert data["field"] == "rate_option"


def test_combined_early_repayment_must_be_object(client):
    response = client.post("/api/combined", json={**COMBINED, "early_repayment": [60, 100_000]})
    assert response.status_code == 400
    assert response.get_json()["error"] == "BadRequest"
