"""Tests for the wizard HTTP endpoints."""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from tradein.core.config import RedirectConfig, Settings, SinkConfig
from tradein.web.app import create_app

WEBHOOK = "https://hooks.example.com/trade-in"


class RecordingSink:
    """Webhook stand-in that records bodies and answers with a fixed status."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        return httpx.Response(self.status_code)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def client(catalog, sink):
    settings = Settings(
        sink=SinkConfig(webhook_url=WEBHOOK),
        redirect=RedirectConfig(end_url="https://trade-in.example.com/"),
    )
    http = httpx.AsyncClient(transport=httpx.MockTransport(sink))
    app = create_app(settings=settings, catalog=catalog, http=http)
    with TestClient(app) as test_client:
        yield test_client


def _start(client) -> str:
    resp = client.post("/api/wizard")
    assert resp.status_code == 200
    return resp.json()["id"]


def _put(client, wizard_id: str, name: str, value: str) -> dict:
    resp = client.put(f"/api/wizard/{wizard_id}/fields/{name}", json={"value": value})
    assert resp.status_code == 200
    return resp.json()


class TestWizardAPI:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["healthy"] is True

    def test_jurisdictions(self, client):
        data = client.get("/api/jurisdictions").json()
        assert data[0] == "AL"
        assert len(data) == 50

    def test_start_returns_years(self, client):
        resp = client.post("/api/wizard")
        data = resp.json()
        assert data["id"]
        assert data["step"] == "vehicle"
        assert data["options"]["years"] == ["Select Years", "2021", "2020"]
        assert data["form"]["state"] == "AL"

    def test_field_updates_drive_options(self, client):
        wizard_id = _start(client)
        data = _put(client, wizard_id, "year", "2020")
        assert data["options"]["makes"] == ["Select Makes", "Honda", "Toyota"]
        data = _put(client, wizard_id, "make", "Toyota")
        assert data["options"]["models"] == ["Select Models", "Camry"]
        data = _put(client, wizard_id, "miles", "3k4")
        assert data["form"]["miles"] == "34"

    def test_unknown_field_404(self, client):
        wizard_id = _start(client)
        resp = client.put(f"/api/wizard/{wizard_id}/fields/trim", json={"value": "LX"})
        assert resp.status_code == 404

    def test_unknown_wizard_404(self, client):
        assert client.get("/api/wizard/nope").status_code == 404
        assert client.post("/api/wizard/nope/advance").status_code == 404
        assert client.delete("/api/wizard/nope").status_code == 404

    def test_advance_validation_error(self, client):
        wizard_id = _start(client)
        data = client.post(f"/api/wizard/{wizard_id}/advance").json()
        assert data["step"] == "vehicle"
        assert data["error"] == "Please fill in all required fields: year, make, model, miles"

    def test_back_at_first_step_400(self, client):
        wizard_id = _start(client)
        resp = client.post(f"/api/wizard/{wizard_id}/back")
        assert resp.status_code == 400

    def test_full_flow(self, client, sink):
        wizard_id = _start(client)
        resp = client.post(
            f"/api/wizard/{wizard_id}/attribution",
            json={"utm_source": "facebook", "fbclid": "fb-9"},
        )
        assert resp.json() == {"accepted": True}

        for name, value in [
            ("year", "2020"), ("make", "Honda"), ("model", "Civic"),
            ("state", "TX"), ("miles", "15000"),
        ]:
            _put(client, wizard_id, name, value)
        data = client.post(f"/api/wizard/{wizard_id}/advance").json()
        assert data["step"] == "contact"

        for name, value in [
            ("name", "Grace Hopper"), ("email", "grace@example.com"), ("phone", "555-0199"),
        ]:
            _put(client, wizard_id, name, value)
        data = client.post(f"/api/wizard/{wizard_id}/advance").json()

        assert data["error"] == ""
        assert data["step"] == "vehicle"
        assert data["form"]["name"] == ""
        redirect = data["redirect"]
        assert redirect["top_level"] is True
        url = httpx.URL(redirect["url"])
        assert url.fragment == "done"
        assert url.params["utm_name"] == "Grace Hopper"
        assert url.params["utm_email"] == "grace@example.com"
        assert url.params["utm_phone"] == "555-0199"

        assert len(sink.bodies) == 1
        body = sink.bodies[0]
        assert body["utm_source"] == "facebook"
        assert body["fbclid"] == "fb-9"
        assert body["form_data"]["model"] == "Civic"
        assert body["marketValue"]["item0"]["trim"] == "LX"

    def test_sink_failure_keeps_contact_step(self, client, sink):
        sink.status_code = 400
        wizard_id = _start(client)
        for name, value in [
            ("year", "2021"), ("make", "Ford"), ("model", "F-150"), ("miles", "9"),
        ]:
            _put(client, wizard_id, name, value)
        client.post(f"/api/wizard/{wizard_id}/advance")
        for name, value in [("name", "G"), ("email", "g@example.com"), ("phone", "1")]:
            _put(client, wizard_id, name, value)
        data = client.post(f"/api/wizard/{wizard_id}/advance").json()
        assert data["step"] == "contact"
        assert data["submitting"] is False
        assert data["redirect"] is None
        assert data["error"] == "There was an error submitting your request. Please try again."
        assert data["form"]["model"] == "F-150"

    def test_discard(self, client):
        wizard_id = _start(client)
        assert client.delete(f"/api/wizard/{wizard_id}").json() == {"discarded": True}
        assert client.get(f"/api/wizard/{wizard_id}").status_code == 404
