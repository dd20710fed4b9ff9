import pytest

from brewpos.config import CONFIG
from brewpos.db import require_schema
from brewpos.main import app
from brewpos.schema import SchemaProvisioner
from brewpos.seed_sources import FALLBACK_MENU


ALEX = {
    "customer": "Alex",
    "items": [
        {"id": 2, "name": "Latte", "price": 5.00, "quantity": 2},
        {"name": "Croissant", "price": 4.00, "quantity": 1},
    ],
}


def test_health_endpoint(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.text == "OK"


def test_menu_is_provisioned_on_first_request(client, provisioner):
    assert not provisioner.ready
    resp = client.get("/api/menu")
    assert resp.status_code == 200
    assert provisioner.ready

    menu = resp.json()
    assert len(menu) == len(FALLBACK_MENU)
    keys = [(m["category"], m["id"]) for m in menu]
    assert keys == sorted(keys)
    assert menu[0]["price"].count(".") == 1


def test_place_order_and_follow_it(client):
    resp = client.post("/api/orders", json={**ALEX, "total": 0.01})
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Order placed!"
    assert body["total"] == "14.00"
    oid = body["order_id"]

    orders = client.get("/api/orders").json()
    assert orders[0]["id"] == oid
    assert orders[0]["status"] == "pending"
    assert {i["name"] for i in orders[0]["items"]} == {"Latte", "Croissant"}

    resp = client.patch(f"/api/orders/{oid}", json={"status": "preparing"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "preparing"

    stats = client.get("/api/stats").json()
    assert stats["preparing"] == 1
    assert stats["total_orders"] == 1
    assert stats["revenue_today"] == "14.00"


@pytest.mark.parametrize("key", ["customer", "customer_name", "name"])
def test_customer_aliases(client, key):
    resp = client.post("/api/orders", json={key: "Sam", "items": ALEX["items"]})
    assert resp.status_code == 201


@pytest.mark.parametrize("payload", [
    {"items": ALEX["items"]},
    {"customer": "  ", "items": ALEX["items"]},
    {"customer": "Sam", "items": []},
    {"customer": "Sam", "items": [{"name": "Latte", "price": "free", "quantity": 1}]},
])
def test_place_order_validation_errors(client, payload):
    resp = client.post("/api/orders", json=payload)
    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    assert body["kind"] == "validation"
    assert client.get("/api/orders").json() == []


def test_place_order_rejects_invalid_json(client):
    resp = client.post("/api/orders", content=b"{nope", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation"


def test_update_status_rejects_unknown_value(client):
    oid = client.post("/api/orders", json=ALEX).json()["order_id"]
    resp = client.patch(f"/api/orders/{oid}", json={"status": "eaten"})
    assert resp.status_code == 400
    assert "pending" in resp.json()["error"]
    assert client.get("/api/orders").json()[0]["status"] == "pending"


def test_update_status_unknown_order(client, monkeypatch):
    resp = client.patch("/api/orders/424242", json={"status": "ready"})
    assert resp.status_code == 404
    assert resp.json()["kind"] == "not_found"

    monkeypatch.setattr(CONFIG.ledger, "report_missing_orders", False)
    resp = client.patch("/api/orders/424242", json={"status": "ready"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True


def test_illegal_transition_when_enforced(client, monkeypatch):
    monkeypatch.setattr(CONFIG.ledger, "enforce_transitions", True)
    oid = client.post("/api/orders", json=ALEX).json()["order_id"]
    resp = client.patch(f"/api/orders/{oid}", json={"status": "delivered"})
    assert resp.status_code == 409
    assert resp.json()["kind"] == "conflict"


def test_order_created_is_broadcast(client):
    with client.websocket_connect("/ws") as ws:
        oid = client.post("/api/orders", json=ALEX).json()["order_id"]
        msg = ws.receive_json()
    assert msg == {"type": "order_created", "order_id": oid, "total": "14.00"}


def test_dashboard_renders(client):
    client.post("/api/orders", json=ALEX)
    resp = client.get("/dashboard")
    assert resp.status_code == 200
    assert "Alex" in resp.text
    assert "14.00" in resp.text


class BrokenSource:
    name = "broken"

    def available(self, conn):
        return True

    def rows(self, conn):
        raise RuntimeError("legacy database offline")


def test_provisioning_failure_is_reported(client, engine):
    broken = SchemaProvisioner(engine, [BrokenSource()])
    app.dependency_overrides[require_schema] = broken.ensure_ready

    resp = client.get("/api/menu")
    assert resp.status_code == 503
    assert resp.json()["kind"] == "provisioning"
    assert not broken.ready


@pytest.mark.parametrize("item", [
    {"name": "Latte", "price": 5, "quantity": "²"},
    {"name": "Latte", "price": 5, "quantity": 10 ** 25},
    {"name": "Latte", "price": "12000", "quantity": 1},
])
def test_out_of_range_numbers_are_validation_errors(client, item):
    resp = client.post("/api/orders", json={"customer": "Sam", "items": [item]})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation"
    assert client.get("/api/orders").json() == []


def test_status_change_is_broadcast(client):
    oid = client.post("/api/orders", json=ALEX).json()["order_id"]
    with client.websocket_connect("/ws") as ws:
        client.patch(f"/api/orders/{oid}", json={"status": "ready"})
        msg = ws.receive_json()
    assert msg == {"type": "order_status", "order_id": oid, "status": "ready"}
