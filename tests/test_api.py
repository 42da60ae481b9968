"""
API tests using FastAPI's TestClient.
"""
import sys
import os
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from fastapi.testclient import TestClient

from saas_pricing.api import state
from saas_pricing.api.main import app
from saas_pricing.services.storage import MemoryStore

FORM = {
    "currentPrice": 49,
    "competitorPrice": 79,
    "customers": 250,
    "churnRate": 5,
    "cac": 100,
    "averageContractLength": 12,
    "expansionRevenue": 10,
    "marketSize": 1000000,
}


@pytest.fixture
def client():
    # Keep saved calculations out of the project data directory
    state.calculations_service.store = MemoryStore()
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_system_status(client):
    body = client.get("/system/status").json()
    assert body["engine_active"] is True
    assert body["formula_profile"] == state.engine.profile.name
    assert body["saved_calculations"] == 0


def test_calculate_camel_case_form(client):
    response = client.post("/calculate", json=FORM)
    assert response.status_code == 200
    body = response.json()
    if body["profile"] == "enhanced":
        assert body["metrics"]["optimal_price"] == 67
    assert len(body["projection_data"]) == 13
    assert len(body["metrics_radar"]) == 6
    assert body["insights"][0]["title"] in ("Healthy Unit Economics", "LTV:CAC Ratio Below Target")


def test_calculate_accepts_garbage_and_empty(client):
    garbage = client.post("/calculate", json={"currentPrice": "abc", "churnRate": "", "customers": "12.9"})
    assert garbage.status_code == 200
    assert garbage.json()["inputs"]["customers"] == 12
    assert garbage.json()["inputs"]["churn_rate"] == 5

    empty = client.post("/calculate", json={})
    assert empty.status_code == 200
    assert empty.json()["metrics"]["optimal_price"] == 0


def test_calculation_crud(client):
    created = client.post("/api/calculations", json={"name": "Q3", "notes": "first", "inputs": FORM})
    assert created.status_code == 200
    calc = created.json()
    calc_id = calc["id"]
    assert calc["name"] == "Q3"
    assert calc["inputs"]["current_price"] == 49
    assert "metrics" in calc["results"]

    assert [c["id"] for c in client.get("/api/calculations").json()] == [calc_id]
    assert client.get(f"/api/calculations/{calc_id}").json()["notes"] == "first"

    updated = client.put(f"/api/calculations/{calc_id}", json={"name": "Q4", "inputs": {"currentPrice": 20}})
    assert updated.status_code == 200
    body = updated.json()
    assert body["name"] == "Q4"
    assert body["notes"] == "first"
    assert body["inputs"]["current_price"] == 20
    assert body["updated"] is not None

    stats = client.get("/api/calculations/stats").json()
    assert stats["total"] == 1

    assert client.delete(f"/api/calculations/{calc_id}").json()["success"] is True
    assert client.get("/api/calculations").json() == []


def test_calculation_not_found(client):
    assert client.get("/api/calculations/calc_missing").status_code == 404
    assert client.put("/api/calculations/calc_missing", json={"name": "x"}).status_code == 404
    assert client.delete("/api/calculations/calc_missing").status_code == 404


def test_export_and_import(client):
    client.post("/api/calculations", json={"name": "Exported", "inputs": FORM})

    exported = client.get("/api/calculations/export")
    assert exported.status_code == 200
    assert "attachment" in exported.headers["content-disposition"]
    records = exported.json()
    assert records[0]["name"] == "Exported"

    imported = client.post("/api/calculations/import", json={"calculations": records})
    assert imported.json() == {"success": True, "imported": 1}

    calcs = client.get("/api/calculations").json()
    assert len(calcs) == 2
    assert calcs[0]["id"] != calcs[1]["id"]


def test_share_round_trip(client):
    created = client.post("/api/share", json=FORM)
    assert created.status_code == 200
    token = created.json()["token"]

    opened = client.get(f"/api/share/{token}")
    assert opened.status_code == 200
    body = opened.json()
    assert body["inputs"]["current_price"] == 49
    assert body["results"] == created.json()["results"]


def test_bad_share_token(client):
    response = client.get("/api/share/e30")
    assert response.status_code == 400


def test_session_socket_relays_between_members(client):
    with client.websocket_connect("/ws/sessions/s1") as alice, \
            client.websocket_connect("/ws/sessions/s1") as bob:
        alice.send_json({"event": "participant:typing", "payload": {"user_id": "alice", "is_typing": True}})
        frame = bob.receive_json()

    assert frame["event"] == "participant:typing"
    assert frame["payload"] == {"user_id": "alice", "is_typing": True, "session_id": "s1"}


def test_session_socket_rejects_unknown_events(client):
    with client.websocket_connect("/ws/sessions/s2") as socket:
        socket.send_json({"event": "calculation:deleted", "payload": {}})
        frame = socket.receive_json()

    assert frame == {"event": "error", "payload": {"detail": "Unknown event"}}


def test_session_socket_announces_left_on_disconnect(client):
    participant = {"user_id": "alice", "display_label": "Alice"}
    with client.websocket_connect("/ws/sessions/s3") as bob:
        with client.websocket_connect("/ws/sessions/s3") as alice:
            alice.send_json({"event": "participant:joined", "payload": {"participant": participant}})
            assert bob.receive_json()["event"] == "participant:joined"

        frame = bob.receive_json()

    assert frame == {
        "event": "participant:left",
        "payload": {"participant": participant, "session_id": "s3"},
    }
