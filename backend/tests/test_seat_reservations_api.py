from fastapi.testclient import TestClient

from tourdesk.api.routes import clients as client_routes
from tourdesk.main import app
from tourdesk.models.child import Child
from tourdesk.models.client import Client

from factories import headers_for, load, make_bus, make_child, make_client, make_destination, reservations_of, reserve

client = TestClient(app)
ADMIN = headers_for("admin@example.com", "admin")


def seed_trip(bus_type="DD 64", seats=64):
    bus_id = make_bus(bus_type, seats)
    dest_id = make_destination(bus_id)
    return bus_id, dest_id


def test_admin_endpoints_require_a_token():
    r = client.get("/api/seat-reservations")
    assert r.status_code == 401
    r = client.get("/api/seat-reservations", headers=headers_for("someone@example.com", "user"))
    assert r.status_code == 403


def test_create_move_and_delete_reservation():
    bus_id, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    r = client.post("/api/seat-reservations", json={"destination_id": dest_id, "seat_number": "5", "client_id": client_id}, headers=ADMIN)
    assert r.status_code == 201, r.text
    res_id = r.json()["id"]
    assert load(Client, client_id).seat_number == "5"

    other_id, _ = make_client(dest_id, first_name="Rui", last_name="Lima")
    taken = client.post("/api/seat-reservations", json={"destination_id": dest_id, "seat_number": "5", "client_id": other_id}, headers=ADMIN)
    assert taken.status_code == 409
    assert taken.json()["detail"] == "Seat is already reserved"

    twice = client.post("/api/seat-reservations", json={"destination_id": dest_id, "seat_number": "6", "client_id": client_id}, headers=ADMIN)
    assert twice.status_code == 400

    moved = client.put(f"/api/seat-reservations/{res_id}", json={"seat_number": "7", "status": "confirmed"}, headers=ADMIN)
    assert moved.status_code == 200, moved.text
    assert moved.json()["seat_number"] == "7"
    assert moved.json()["status"] == "confirmed"
    assert load(Client, client_id).seat_number == "7"

    r = client.delete(f"/api/seat-reservations/{res_id}", headers=ADMIN)
    assert r.status_code == 204
    assert reservations_of(dest_id) == []
    assert load(Client, client_id).seat_number is None


def test_guide_seat_cannot_be_booked_by_admin():
    _bus, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    r = client.post("/api/seat-reservations", json={"destination_id": dest_id, "seat_number": "45", "client_id": client_id}, headers=ADMIN)
    assert r.status_code == 400


def test_move_onto_taken_seat():
    bus_id, dest_id = seed_trip()
    a, _ = make_client(dest_id)
    b, _ = make_client(dest_id, first_name="Rui", last_name="Lima")
    res_a = reserve(dest_id, bus_id, a, "1")
    reserve(dest_id, bus_id, b, "2")
    r = client.put(f"/api/seat-reservations/{res_a}", json={"seat_number": "2"}, headers=ADMIN)
    assert r.status_code == 409


def test_manual_reservation_creates_client():
    _bus, dest_id = seed_trip()
    r = client.post(
        "/api/seat-reservations/manual",
        json={"destination_id": dest_id, "seat_number": "9", "client_name": "Maria da Silva", "cpf_or_rg": "123", "departure_location": "Rodoviária"},
        headers=ADMIN,
    )
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["client"]["first_name"] == "Maria"
    assert data["client"]["last_name"] == "da Silva"
    assert data["client"]["approval_status"] == "approved"
    assert data["reservation"]["seat_number"] == "9"
    assert data["reservation"]["client_name"] == "Maria da Silva"


def test_assign_existing_companion():
    _bus, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    kid = make_child(client_id, "Pedro Souza")
    r = client.post("/api/seat-reservations/assign-existing", json={"destination_id": dest_id, "seat_number": "3", "client_id": client_id, "passenger_type": "companion"}, headers=ADMIN)
    assert r.status_code == 400
    assert r.json()["detail"] == "child_id is required for companions"

    r = client.post(
        "/api/seat-reservations/assign-existing",
        json={"destination_id": dest_id, "seat_number": "3", "client_id": client_id, "passenger_type": "companion", "child_id": kid},
        headers=ADMIN,
    )
    assert r.status_code == 201, r.text
    res = r.json()["reservation"]
    assert res["is_child"] is True
    assert res["client_id"] == client_id
    assert res["child_id"] == kid
    assert load(Child, kid).seat_number == "3"


def test_unassigned_and_with_clients_views():
    bus_id, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    kid = make_child(client_id, "Pedro Souza")
    unassigned = client.get(f"/api/destinations/{dest_id}/unassigned", headers=ADMIN).json()
    assert {u["id"] for u in unassigned} == {str(client_id), f"child-{kid}"}

    reserve(dest_id, bus_id, client_id, "4", child_id=kid, name="Pedro Souza")
    unassigned = client.get(f"/api/destinations/{dest_id}/unassigned", headers=ADMIN).json()
    assert [u["type"] for u in unassigned] == ["client"]

    rows = client.get(f"/api/seat-reservations/destination/{dest_id}/with-clients", headers=ADMIN).json()
    assert rows[0]["client"]["id"] == client_id
    assert rows[0]["child"]["name"] == "Pedro Souza"


def test_admin_seat_editor_swaps_family_seats():
    bus_id, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    kid = make_child(client_id, "Pedro Souza")
    reserve(dest_id, bus_id, client_id, "1", name="Ana Souza")
    reserve(dest_id, bus_id, client_id, "2", child_id=kid, name="Pedro Souza")
    other_id, _ = make_client(dest_id, first_name="Rui", last_name="Lima")
    reserve(dest_id, bus_id, other_id, "3", name="Rui Lima")

    r = client.put(f"/api/clients/{client_id}/seats", json={"client_seat": "2", "children_seats": [{"child_id": kid, "seat_number": "1"}]}, headers=ADMIN)
    assert r.status_code == 200, r.text
    seats = {(row.client_id, row.child_id): row.seat_number for row in reservations_of(dest_id)}
    assert seats == {(client_id, None): "2", (client_id, kid): "1", (other_id, None): "3"}
    assert load(Client, client_id).seat_number == "2"

    r = client.put(f"/api/clients/{client_id}/seats", json={"client_seat": "3", "children_seats": [{"child_id": kid, "seat_number": "1"}]}, headers=ADMIN)
    assert r.status_code == 409
    assert len(reservations_of(dest_id)) == 3


def test_admin_seat_editor_drops_left_out_companions():
    bus_id, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    kid = make_child(client_id, "Pedro Souza")
    reserve(dest_id, bus_id, client_id, "1", name="Ana Souza")
    reserve(dest_id, bus_id, client_id, "2", child_id=kid, name="Pedro Souza")
    r = client.put(f"/api/clients/{client_id}/seats", json={"client_seat": "5"}, headers=ADMIN)
    assert r.status_code == 200, r.text
    assert [row.seat_number for row in reservations_of(dest_id)] == ["5"]
    assert load(Child, kid).seat_number is None


def test_admin_seat_editor_throttle(monkeypatch):
    monkeypatch.setattr(client_routes.settings, "selection_throttle_seconds", 60)
    _bus, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    headers = headers_for("editor@example.com", "admin")
    assert client.put(f"/api/clients/{client_id}/seats", json={"client_seat": "5"}, headers=headers).status_code == 200
    assert client.put(f"/api/clients/{client_id}/seats", json={"client_seat": "6"}, headers=headers).status_code == 429


def test_occupancy_and_seat_map():
    bus_id, dest_id = seed_trip()
    client_id, _ = make_client(dest_id)
    reserve(dest_id, bus_id, client_id, "1", name="Ana Souza")
    reserve(dest_id, bus_id, client_id, "2", name="Pedro Souza")

    occ = client.get(f"/api/destinations/{dest_id}/occupancy", headers=ADMIN).json()
    assert occ["total_seats"] == 63
    assert occ["reserved"] == 2
    assert occ["available"] == 61

    seat_map = client.get(f"/api/destinations/{dest_id}/seat-map", params={"highlight": "2"}, headers=ADMIN).json()
    row = seat_map["floors"][0]["items"][1]
    seats = {s["number"]: s for s in row["left"] + row["right"]}
    assert seats["1"]["status"] == "reserved"
    assert seats["1"]["passenger_name"] == "Ana Souza"
    assert seats["1"]["clickable"] is True
    assert seats["2"]["status"] == "highlighted"
    assert seats["3"]["clickable"] is False


def test_bus_layout_preview_and_delete_guard():
    bus_id = make_bus("Micro", 10)
    r = client.get(f"/api/buses/{bus_id}/layout")
    assert r.status_code == 200
    assert r.json()["layout"] == "generic"
    assert r.json()["capacity"] == 10

    make_destination(bus_id)
    r = client.delete(f"/api/buses/{bus_id}", headers=ADMIN)
    assert r.status_code == 409


def test_bus_with_reservations_on_archived_trip_cannot_be_deleted():
    bus_id = make_bus("DD 64", 64)
    dest_id = make_destination(bus_id, is_active=False)
    client_id, _token = make_client(dest_id, status="approved")
    reserve(dest_id, bus_id, client_id, "10", name="Ana Souza")

    r = client.delete(f"/api/buses/{bus_id}", headers=ADMIN)
    assert r.status_code == 409, r.text
    assert r.json()["detail"] == "Bus has seat reservations"
    assert len(reservations_of(dest_id)) == 1


def test_unused_bus_can_be_deleted():
    bus_id = make_bus("Micro", 10)
    make_destination(bus_id, is_active=False)
    r = client.delete(f"/api/buses/{bus_id}", headers=ADMIN)
    assert r.status_code == 200, r.text
    assert client.get(f"/api/buses/{bus_id}").status_code == 404
