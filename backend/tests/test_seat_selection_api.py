from datetime import date
from functools import partial
import itertools

from fastapi.testclient import TestClient

from tourdesk.api.routes import seat_selection as seat_selection_routes
from tourdesk.main import app
from tourdesk.models.child import Child
from tourdesk.models.client import Client
from tourdesk.services.seat_client import SeatSelectionClient
from tourdesk.services.seat_selection import ClickGuard, SelectionSession, SelectionState

from factories import load, make_bus, make_child, make_client, make_destination, reservations_of, reserve

client = TestClient(app)


def seed_family(kids_policy=None, with_bus=True, **client_kw):
    bus_id = make_bus("DD 64 G7", 64) if with_bus else None
    dest_id = make_destination(bus_id, kids_policy=kids_policy)
    client_id, token = make_client(dest_id, **client_kw)
    return bus_id, dest_id, client_id, token


def test_context_for_valid_token():
    bus_id, dest_id, client_id, token = seed_family()
    kid = make_child(client_id, "Pedro Souza", age_years=10)
    r = client.get(f"/api/seat-selection/{token}")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["valid"] is True and data["expired"] is False
    assert data["already_selected"] is False
    assert data["layout"] == "dd64"
    assert data["reserved_seats"] == []
    assert [p["id"] for p in data["passengers"]] == ["client", str(kid)]
    assert data["bus"]["total_seats"] == 64


def test_unknown_token():
    r = client.get("/api/seat-selection/does-not-exist")
    assert r.status_code == 404
    assert r.json()["detail"] == "Invalid or expired token"


def test_submit_reserves_the_whole_family():
    bus_id, dest_id, client_id, token = seed_family()
    kid = make_child(client_id, "Pedro Souza", age_years=10)
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "10", "children_seats": [{"child_id": kid, "seat_number": "11"}]})
    assert r.status_code == 200, r.text
    assert r.json()["success"] is True

    rows = reservations_of(dest_id)
    assert [(row.seat_number, row.client_id, row.child_id) for row in rows] == [("10", client_id, None), ("11", client_id, kid)]
    assert load(Client, client_id).seat_number == "10"
    assert load(Child, kid).seat_number == "11"

    data = client.get(f"/api/seat-selection/{token}").json()
    assert sorted(data["reserved_seats"]) == ["10", "11"]
    assert data["already_selected"] is True

    again = client.post(f"/api/seat-selection/{token}", json={"client_seat": "12", "children_seats": [{"child_id": kid, "seat_number": "13"}]})
    assert again.status_code == 400
    assert again.json()["detail"] == "Seats already selected"


def test_client_seat_is_required():
    _bus, _dest, _client, token = seed_family()
    r = client.post(f"/api/seat-selection/{token}", json={"children_seats": []})
    assert r.status_code == 400
    assert r.json()["detail"] == "Client seat number is required"


def test_conflict_with_existing_reservation():
    bus_id, dest_id, client_id, token = seed_family()
    other_id, _ = make_client(dest_id, first_name="Rui", last_name="Lima")
    reserve(dest_id, bus_id, other_id, "12")
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "12"})
    assert r.status_code == 409
    assert r.json()["detail"] == "These seats are already reserved: 12"
    assert [row.seat_number for row in reservations_of(dest_id)] == ["12"]


def test_same_seat_twice_in_one_group():
    _bus, _dest, client_id, token = seed_family()
    kid = make_child(client_id, age_years=10)
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "13", "children_seats": [{"child_id": kid, "seat_number": "13"}]})
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot select the same seat for multiple people"


def test_guide_and_unknown_seats_are_refused():
    _bus, dest_id, _client, token = seed_family()
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "45"})
    assert r.status_code == 400
    assert "tour guide" in r.json()["detail"]
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "99"})
    assert r.status_code == 400
    assert reservations_of(dest_id) == []


def test_destination_without_bus():
    _bus, _dest, _client, token = seed_family(with_bus=False)
    data = client.get(f"/api/seat-selection/{token}").json()
    assert data["bus"] is None and data["layout"] is None
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1"})
    assert r.status_code == 400
    assert r.json()["detail"] == "No bus configured for this destination"


def test_expired_pending_token():
    _bus, _dest, _client, token = seed_family(expires_in_days=-1)
    data = client.get(f"/api/seat-selection/{token}").json()
    assert data["expired"] is True and data["valid"] is False
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1"})
    assert r.status_code == 400
    assert r.json()["detail"] == "This link has expired"


def test_approved_token_never_expires():
    _bus, _dest, _client, token = seed_family(status="approved", expires_in_days=-30)
    data = client.get(f"/api/seat-selection/{token}").json()
    assert data["valid"] is True
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1"})
    assert r.status_code == 200, r.text


def test_kids_policy_excludes_toddlers():
    _bus, dest_id, client_id, token = seed_family(kids_policy="no")
    baby = make_child(client_id, "Bebê Souza", age_years=2)
    data = client.get(f"/api/seat-selection/{token}").json()
    assert [p["id"] for p in data["passengers"]] == ["client"]
    assert len(data["children"]) == 1

    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1", "children_seats": [{"child_id": baby, "seat_number": "2"}]})
    assert r.status_code == 400
    assert "not eligible" in r.json()["detail"]

    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1"})
    assert r.status_code == 200, r.text
    assert client.get(f"/api/seat-selection/{token}").json()["already_selected"] is True


def test_every_eligible_passenger_needs_a_seat():
    _bus, _dest, client_id, token = seed_family()
    make_child(client_id, age_years=10)
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Every passenger must have a seat"


def test_companion_of_another_client():
    _bus, dest_id, _client_id, token = seed_family()
    other_id, _ = make_client(dest_id, first_name="Rui", last_name="Lima")
    stranger = make_child(other_id, age_years=10)
    r = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1", "children_seats": [{"child_id": stranger, "seat_number": "2"}]})
    assert r.status_code == 400
    assert r.json()["detail"] == "Companion does not belong to this client"


def test_double_submit_is_throttled(monkeypatch):
    monkeypatch.setattr(seat_selection_routes.settings, "selection_throttle_seconds", 60)
    _bus, _dest, _client, token = seed_family()
    first = client.post(f"/api/seat-selection/{token}", json={"client_seat": "1"})
    assert first.status_code == 200, first.text
    second = client.post(f"/api/seat-selection/{token}", json={"client_seat": "2"})
    assert second.status_code == 429


def _session_for(api: SeatSelectionClient, token: str) -> SelectionSession:
    clock = itertools.count()
    return SelectionSession.from_context(api.fetch(token), today=date.today(), guard=ClickGuard(clock=lambda: float(next(clock))))


def test_session_round_trip_over_http():
    _bus, dest_id, client_id, token = seed_family()
    make_child(client_id, "Pedro Souza", age_years=10)
    api = SeatSelectionClient(client, sleep=lambda _s: None)
    session = _session_for(api, token)
    session.select_seat("20")
    session.select_seat("21")
    assert session.submit(partial(api.submit, token))
    assert session.state is SelectionState.SUCCESS
    assert [row.seat_number for row in reservations_of(dest_id)] == ["20", "21"]


def test_stale_snapshot_loses_the_race():
    bus_id, dest_id, _client_id, token = seed_family()
    api = SeatSelectionClient(client, sleep=lambda _s: None)
    session = _session_for(api, token)

    rival_id, rival_token = make_client(dest_id, first_name="Rui", last_name="Lima")
    assert client.post(f"/api/seat-selection/{rival_token}", json={"client_seat": "30"}).status_code == 200

    session.select_seat("30")
    assert session.submit(partial(api.submit, token)) is False
    assert session.state is SelectionState.ERROR
    assert session.error_message == "These seats are already reserved: 30"
