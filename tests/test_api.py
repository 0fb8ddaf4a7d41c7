"""
HTTP API: request validation, engine endpoints and scenario import/export.
Run with: python3 -m pytest tests/test_api.py -v
"""

import json
import os
import sys

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from whealthy_app.main import app

client = TestClient(app)


def make_payload(**overrides) -> dict:
    payload = {"startWealth": 10_000_000, "currentAge": 45, "deathAge": 60}
    payload.update(overrides)
    return payload


def test_health():
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_default_scenario_is_camel_case():
    data = client.get("/api/scenario/default").json()
    assert data["startWealth"] == 10_000_000
    assert data["deathAge"] == 95
    assert data["privCommit"]["enabled"] is False


def test_simulate_forward():
    resp = client.post("/api/simulate", json=make_payload(deathAge=95))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["summary"]["horizon_years"] == 50
    assert data["summary"]["return_basis"] == "nominal"
    assert len(data["deterministic"]["rows"]) == 51
    assert data["monte_carlo"] is None
    assert data["reverse"] is None


def test_simulate_with_monte_carlo():
    resp = client.post("/api/simulate", json=make_payload(runMonteCarlo=True, numPaths=100, randomSeed=4))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert len(data["monte_carlo"]["paths"]) == 100
    assert data["summary"]["num_paths"] == 100
    assert data["summary"]["ruin_probability"] == data["monte_carlo"]["ruin_probability"]


def test_simulate_reverse_mode():
    resp = client.post("/api/simulate", json=make_payload(calculationMode="reverse", desiredTerminalWealth=3_000_000))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["reverse"]["converged"] is True
    assert "rows" not in data["reverse"]
    assert data["deterministic"]["rows"][0]["year"] == 0


def test_deterministic_rows():
    resp = client.post("/api/deterministic", json=make_payload())
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert len(data["rows"]) == 16
    assert data["rows"][-1]["age"] == 60
    assert data["broke_year"] == -1
    assert "liquidity_years" in data["rows"][0]


def test_monte_carlo_seeded_is_reproducible():
    payload = make_payload(numPaths=100, randomSeed=1)
    first = client.post("/api/monte-carlo", json=payload).json()
    second = client.post("/api/monte-carlo", json=payload).json()
    assert first["seed"] == 1
    assert first["bands"] == second["bands"]
    assert set(first["bands"]) == {"5", "25", "50", "75", "95"}


def test_monte_carlo_path_cap_rejected():
    resp = client.post("/api/monte-carlo", json=make_payload(numPaths=5_000))
    assert resp.status_code == 422


def test_reverse_endpoint():
    resp = client.post("/api/reverse", json=make_payload(desiredTerminalWealth=2_000_000))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["converged"] is True
    assert abs(data["calculated_terminal_wealth"] - 2_000_000) < 1_000
    assert len(data["rows"]) == 16


def test_invalid_params_rejected():
    resp = client.post("/api/deterministic", json=make_payload(currentAge=70, deathAge=60))
    assert resp.status_code == 422


def test_import_valid_scenario():
    resp = client.post("/api/scenario/import", content=json.dumps({"startWealth": 3_000_000}))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["startWealth"] == 3_000_000
    assert data["deathAge"] == 95


def test_import_reports_offending_field():
    resp = client.post("/api/scenario/import", content=json.dumps({"privCommit": {"distMultiple": -2}}))
    assert resp.status_code == 422
    body = resp.json()
    assert body["field"] == "privCommit.distMultiple"
    assert body["detail"]


def test_import_bad_json():
    resp = client.post("/api/scenario/import", content="{oops")
    assert resp.status_code == 422
    assert resp.json()["field"] is None


def test_export_is_attachment():
    resp = client.post("/api/scenario/export", json=make_payload())
    assert resp.status_code == 200
    assert "attachment" in resp.headers["content-disposition"]
    assert resp.json()["deathAge"] == 60


def test_tax_setup():
    resp = client.post("/api/tax-setup", json={"residences": ["germany", "us"], "doubleTaxRelief": 0.5})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["tax_jurisdiction"] == "germany-us"
    assert abs(data["tax_interest"] - 0.1725) < 1e-9
    assert data["holding_patch"]["public_dividend_source"] == "us"


def test_tax_setup_requires_a_residence():
    resp = client.post("/api/tax-setup", json={"residences": []})
    assert resp.status_code == 422


def test_non_finite_body_rejected():
    resp = client.post(
        "/api/deterministic",
        content='{"startWealth": NaN}',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 422
    assert ["body", "startWealth"] in [err["loc"] for err in resp.json()["detail"]]


def test_import_non_finite_reports_field():
    resp = client.post("/api/scenario/import", content='{"startWealth": Infinity}')
    assert resp.status_code == 422
    assert resp.json()["field"] == "startWealth"


def test_apply_tax_setup_patches_scenario():
    resp = client.post(
        "/api/tax-setup/apply",
        json=make_payload(taxResidences=["germany", "us"], taxJurisdiction="custom"),
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["taxJurisdiction"] == "germany-us"
    assert abs(data["taxDividends"] - 0.1725) < 1e-9
    assert data["holdingCompanyStructure"]["publicDividendSource"] == "us"
    assert data["deathAge"] == 60


def test_apply_tax_setup_single_us_residence():
    resp = client.post("/api/tax-setup/apply", json=make_payload(taxResidences=["us"]))
    data = resp.json()
    assert data["taxJurisdiction"] == "us"
    assert abs(data["taxInterest"] - 0.21) < 1e-9
