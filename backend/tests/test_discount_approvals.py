import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from tourdesk.main import app

from factories import headers_for, make_client, make_destination, make_user, token_for

ADMIN_EMAIL = "agent@example.com"
VADMIN_EMAIL = "boss@example.com"
ADMIN = headers_for(ADMIN_EMAIL, "admin", name="Agent Smith")
VADMIN = headers_for(VADMIN_EMAIL, "vadmin", name="Boss")


def seed():
    make_user(VADMIN_EMAIL, role="vadmin")
    dest_id = make_destination(None)
    client_id, _ = make_client(dest_id)
    return client_id


def test_request_is_pushed_to_vadmins():
    client_id = seed()
    with TestClient(app) as tc:
        with tc.websocket_connect(f"/ws?token={token_for(VADMIN_EMAIL, 'vadmin')}") as ws:
            assert ws.receive_json()["type"] == "connected"
            r = tc.post("/api/discount-approvals", json={"client_id": client_id, "requested_discount_type": "5", "requested_discount_value": 5}, headers=ADMIN)
            assert r.status_code == 201, r.text
            pushed = ws.receive_json()
        assert pushed["type"] == "discount_approval_request"
        assert pushed["data"]["id"] == r.json()["id"]
        assert pushed["data"]["client_name"] == "Ana Souza"
        assert pushed["data"]["requested_by_name"] == "Agent Smith"

        notes = tc.get("/api/notifications/", headers=VADMIN).json()
        assert [n["type"] for n in notes] == ["discount_approval_request"]
        assert tc.get("/api/notifications/unread-count", headers=VADMIN).json() == {"unread": 1}
        assert tc.post("/api/notifications/mark-all-read", headers=VADMIN).json()["updated"] == 1


def test_decision_is_pushed_to_requester():
    client_id = seed()
    with TestClient(app) as tc:
        created = tc.post("/api/discount-approvals", json={"client_id": client_id, "requested_discount_type": "custom", "requested_discount_value": 12.5}, headers=ADMIN)
        request_id = created.json()["id"]
        assert [p["id"] for p in tc.get("/api/discount-approvals/pending", headers=VADMIN).json()] == [request_id]

        with tc.websocket_connect(f"/ws?token={token_for(ADMIN_EMAIL, 'admin')}") as ws:
            ws.receive_json()
            missing = tc.patch(f"/api/discount-approvals/{request_id}/approve", json={}, headers=VADMIN)
            assert missing.status_code == 400
            assert missing.json()["detail"] == "max_discount_percentage_allowed is required"

            r = tc.patch(f"/api/discount-approvals/{request_id}/approve", json={"max_discount_percentage_allowed": 10}, headers=VADMIN)
            assert r.status_code == 200, r.text
            pushed = ws.receive_json()
        assert pushed["type"] == "discount_approval_decision"
        assert pushed["data"]["status"] == "approved"
        assert pushed["data"]["max_discount_percentage_allowed"] == 10.0
        assert pushed["data"]["decided_by_email"] == VADMIN_EMAIL

        again = tc.patch(f"/api/discount-approvals/{request_id}/reject", json={"reason": "late"}, headers=VADMIN)
        assert again.status_code == 400
        assert again.json()["detail"] == "Request already decided"
        assert tc.get("/api/discount-approvals/pending", headers=VADMIN).json() == []

        notes = tc.get("/api/notifications/", headers=ADMIN).json()
        assert notes[0]["type"] == "discount_approval_decision"


def test_reject_with_reason():
    client_id = seed()
    with TestClient(app) as tc:
        request_id = tc.post("/api/discount-approvals", json={"client_id": client_id, "requested_discount_type": "3", "requested_discount_value": 3}, headers=ADMIN).json()["id"]
        r = tc.patch(f"/api/discount-approvals/{request_id}/reject", json={"reason": "Margin too low"}, headers=VADMIN)
        assert r.status_code == 200
        assert r.json()["status"] == "rejected"
        assert r.json()["rejection_reason"] == "Margin too low"
        assert tc.get(f"/api/discount-approvals/{request_id}", headers=ADMIN).json()["status"] == "rejected"


def test_only_vadmins_decide():
    client_id = seed()
    with TestClient(app) as tc:
        request_id = tc.post("/api/discount-approvals", json={"client_id": client_id, "requested_discount_type": "5", "requested_discount_value": 5}, headers=ADMIN).json()["id"]
        assert tc.get("/api/discount-approvals/pending", headers=ADMIN).status_code == 403
        assert tc.patch(f"/api/discount-approvals/{request_id}/approve", json={"max_discount_percentage_allowed": 5}, headers=ADMIN).status_code == 403
        bad = tc.post("/api/discount-approvals", json={"client_id": client_id, "requested_discount_type": "7", "requested_discount_value": 7}, headers=ADMIN)
        assert bad.status_code == 422


def test_socket_rejects_non_admins():
    with TestClient(app) as tc:
        for query in ("", f"?token={token_for('someone@example.com', 'user')}", "?token=garbage"):
            with pytest.raises(WebSocketDisconnect) as exc:
                with tc.websocket_connect(f"/ws{query}"):
                    pass
            assert exc.value.code == 1008


def test_socket_ping_pong():
    with TestClient(app) as tc:
        with tc.websocket_connect(f"/ws?token={token_for(ADMIN_EMAIL, 'admin')}") as ws:
            assert ws.receive_json() == {"type": "connected", "message": "WebSocket connection established"}
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}


def test_database_work_runs_outside_the_event_loop(monkeypatch):
    import asyncio
    from tourdesk.api.routes import discount_approvals

    seen = []

    def off_loop(fn):
        def wrapper(*args, **kwargs):
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                seen.append((fn.__name__, "worker"))
            else:
                seen.append((fn.__name__, "loop"))
            return fn(*args, **kwargs)
        return wrapper

    monkeypatch.setattr(discount_approvals, "_store_request", off_loop(discount_approvals._store_request))
    monkeypatch.setattr(discount_approvals, "_store_decision", off_loop(discount_approvals._store_decision))

    client_id = seed()
    with TestClient(app) as tc:
        request_id = tc.post("/api/discount-approvals", json={"client_id": client_id, "requested_discount_type": "5", "requested_discount_value": 5}, headers=ADMIN).json()["id"]
        r = tc.patch(f"/api/discount-approvals/{request_id}/reject", json={"reason": "no"}, headers=VADMIN)
        assert r.status_code == 200, r.text
    assert seen == [("_store_request", "worker"), ("_store_decision", "worker")]
