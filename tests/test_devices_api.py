"""
Tests for the device HTTP API.

Runs the application with its startup hook, which registers the
simulated devices.
"""

import pytest
from fastapi.testclient import TestClient

from appliance_hub.capabilities.device_registry import DeviceRegistry
from appliance_hub.main import app


@pytest.fixture
def client():
    DeviceRegistry.reset()
    with TestClient(app) as client:
        yield client
    DeviceRegistry.reset()


class TestHealth:

    def test_ping(self, client):
        response = client.get("/api/v1/ping")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "message": "pong"}

    def test_health_counts(self, client):
        data = client.get("/api/v1/health").json()

        assert data["operations"] == 20
        assert data["devices"] == data["connected"] > 0


class TestDeviceEndpoints:
    """Listing, operations and status."""

    def test_list_devices(self, client):
        response = client.get("/api/v1/devices/")

        assert response.status_code == 200
        ids = [d["uuid"] for d in response.json()]
        assert "desk_plug" in ids
        assert "office_strip" in ids

    def test_list_devices_by_connection(self, client):
        connected = client.get("/api/v1/devices/", params={"connected": "true"}).json()
        disconnected = client.get("/api/v1/devices/", params={"connected": "false"}).json()

        assert "desk_plug" in [d["uuid"] for d in connected]
        assert disconnected == []

    def test_configuration_in_status(self, client):
        fields = client.get("/api/v1/devices/hall_thermostat/status").json()["fields"]

        assert fields["Do Not Disturb"] == "Disabled"
        assert fields["Over-temperature Protection"] == "Enabled"

    def test_get_device(self, client):
        data = client.get("/api/v1/devices/office_strip").json()

        assert data["name"] == "Office Strip"
        assert data["channels"] == [0, 1, 2, 3]
        assert data["connection"] == "push"

    def test_unknown_device_404(self, client):
        assert client.get("/api/v1/devices/nope").status_code == 404
        assert client.get("/api/v1/devices/nope/status").status_code == 404
        assert client.get("/api/v1/devices/nope/operations").status_code == 404

    def test_operations(self, client):
        response = client.get("/api/v1/devices/desk_plug/operations")

        assert response.status_code == 200
        ops = response.json()
        assert [op["name"] for op in ops] == ["timer.delete", "timer.set", "childLock.set", "toggle.set"]
        assert ops[-1]["params"][1] == {
            "name": "on",
            "type": "boolean",
            "label": "State",
            "required": True,
            "choices": [{"name": "On", "value": True}, {"name": "Off", "value": False}],
        }

    def test_status(self, client):
        response = client.get("/api/v1/devices/desk_plug/status")

        assert response.status_code == 200
        data = response.json()
        assert data["device_id"] == "desk_plug"
        assert data["has_any_reading"] is True
        assert data["fields"]["Power"] == "42.50 W"
        assert data["fields"]["State"] == "On"


class TestOperationEndpoint:
    """Executing operations over HTTP."""

    def test_execute(self, client):
        response = client.post(
            "/api/v1/devices/office_strip/operations/toggle.set",
            json={"params": {"on": True, "channel": 1}},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True

        status = client.get("/api/v1/devices/office_strip/status").json()
        assert status["fields"]["Socket 1 Power"] == "On"
        assert status["fields"]["Socket 0 Power"] == "Off"

    def test_invalid_params_400(self, client):
        response = client.post(
            "/api/v1/devices/office_strip/operations/toggle.set",
            json={"params": {}},
        )

        assert response.status_code == 400

    def test_unavailable_operation_400(self, client):
        response = client.post(
            "/api/v1/devices/office_strip/operations/light.set",
            json={"params": {"on": True}},
        )

        assert response.status_code == 400

    def test_unknown_device_404(self, client):
        response = client.post("/api/v1/devices/nope/operations/toggle.set", json={"params": {"on": True}})

        assert response.status_code == 404
