from fastapi.testclient import TestClient

from tourdesk.main import app
from tourdesk.models.client import Client

from factories import headers_for, load, make_bus, make_child, make_client, make_destination

client = TestClient(app)
ADMIN = headers_for("admin@example.com", "admin")


def test_new_client_gets_an_approval_link():
    dest_id = make_destination(make_bus())
    r = client.post("/api/clients", json={"first_name": "Ana", "last_name": "Souza", "destination_id": dest_id, "travel_price": 1500}, headers=ADMIN)
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["approval_status"] == "pending"
    assert data["approval_link"] == f"/approve/{data['approval_token']}"

    kid = client.post(f"/api/clients/{data['id']}/children", json={"name": "Pedro Souza", "birthdate": "2015-05-05", "relationship": "filho"}, headers=ADMIN)
    assert kid.status_code == 201, kid.text
    bad = client.post(f"/api/clients/{data['id']}/children", json={"name": "X", "relationship": "pet"}, headers=ADMIN)
    assert bad.status_code == 422

    page = client.get(f"/api/approve/{data['approval_token']}").json()
    assert page["valid"] is True
    assert page["client"]["children"][0]["name"] == "Pedro Souza"


def test_approval_requires_terms():
    dest_id = make_destination(make_bus())
    _client_id, token = make_client(dest_id)
    r = client.post(f"/api/approve/{token}", json={"accepted": True, "terms_accepted": False})
    assert r.status_code == 400
    assert r.json()["detail"] == "Approval must be accepted with terms and conditions"


def test_approval_links_to_seat_selection_when_bus_exists():
    dest_id = make_destination(make_bus())
    client_id, token = make_client(dest_id)
    r = client.post(f"/api/approve/{token}", json={"accepted": True, "terms_accepted": True})
    assert r.status_code == 200, r.text
    assert r.json()["seat_selection_url"] == f"/seat-selection/{token}"
    assert set(r.json()) == {"success", "client", "seat_selection_url"}
    assert load(Client, client_id).approval_status == "approved"
    assert client.get(f"/api/approve/{token}").json()["already_approved"] is True


def test_approval_without_bus_has_no_seat_step():
    dest_id = make_destination(None, whatsapp_group_link="https://chat.whatsapp.com/abc")
    _client_id, token = make_client(dest_id)
    r = client.post(f"/api/approve/{token}", json={"accepted": True, "terms_accepted": True})
    assert r.status_code == 200
    assert r.json()["seat_selection_url"] is None
    thanks = client.get(f"/api/thank-you/{token}").json()
    assert thanks["whatsapp_group_link"] == "https://chat.whatsapp.com/abc"
    assert thanks["client_name"] == "Ana Souza"


def test_expired_link_cannot_be_approved():
    dest_id = make_destination(make_bus())
    client_id, token = make_client(dest_id, expires_in_days=-1)
    r = client.post(f"/api/approve/{token}", json={"accepted": True, "terms_accepted": True})
    assert r.status_code == 400
    assert r.json()["detail"] == "Approval token has expired"
    assert load(Client, client_id).approval_status == "expired"

    fresh = client.post(f"/api/clients/{client_id}/approval-link", headers=ADMIN)
    assert fresh.status_code == 200
    new_token = fresh.json()["approval_token"]
    assert new_token != token
    assert client.get(f"/api/approve/{new_token}").json()["valid"] is True


def test_soft_delete_releases_seats():
    bus_id = make_bus()
    dest_id = make_destination(bus_id)
    client_id, token = make_client(dest_id)
    kid = make_child(client_id, age_years=10)
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1", "children_seats": [{"child_id": kid, "seat_number": "2"}]})
    assert r.status_code == 200, r.text

    assert client.delete(f"/api/clients/{client_id}", headers=ADMIN).status_code == 200
    assert client.get(f"/api/seat-reservations/destination/{dest_id}", headers=ADMIN).json() == []
    assert client.get(f"/api/clients/{client_id}", headers=ADMIN).status_code == 404
