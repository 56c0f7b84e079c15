from datetime import timedelta

import pytest

from tests.conftest import JAKARTA_PICKUP, NOW


def booking_payload(journey, seats=1, pickup=JAKARTA_PICKUP):
    return {
        "journey_id": str(journey.id),
        "seats": seats,
        "pickup_lat": pickup[0],
        "pickup_lng": pickup[1],
    }


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "Bus Travel Booking System API"
    assert client.get("/health").json() == {"status": "healthy"}


def test_register_login_and_me(client):
    response = client.post("/api/auth/register", json={
        "email": "dina@bustravel.com", "name": "Dina", "password": "secret123"
    })
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "traveller"

    response = client.post("/api/auth/login", json={"email": "dina@bustravel.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "dina@bustravel.com"


def test_register_duplicate_email(client, users):
    response = client.post("/api/auth/register", json={
        "email": "alice@bustravel.com", "name": "Alice Again", "password": "secret123"
    })
    assert response.status_code == 409


def test_login_with_wrong_password(client, users):
    response = client.post("/api/auth/login", json={"email": "alice@bustravel.com", "password": "wrong-pass"})
    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_list_cities(client, cities):
    names = [city["name"] for city in client.get("/api/cities/").json()]
    assert names == ["Bandung", "Jakarta"]


def test_list_journeys_shows_upcoming_with_available_seats(client, make_journey, users):
    upcoming = make_journey(total_seats=4, driver=users["driver"])
    make_journey(departs_in=timedelta(hours=-2))

    journeys = client.get("/api/journeys/").json()

    assert [j["id"] for j in journeys] == [str(upcoming.id)]
    assert journeys[0]["available_seats"] == 4
    assert journeys[0]["has_driver"] is True
    assert journeys[0]["origin_city"]["name"] == "Jakarta"


def test_get_unknown_journey(client, cities):
    assert client.get("/api/journeys/00000000-0000-0000-0000-000000000000").status_code == 404


def test_two_seat_scenario_over_http(client, make_journey, users, auth_headers):
    journey = make_journey(total_seats=2)
    alice, bob = auth_headers(users["alice"]), auth_headers(users["bob"])

    response = client.post("/api/bookings/", json=booking_payload(journey, seats=2), headers=alice)
    assert response.status_code == 201
    booking_id = response.json()["id"]
    assert client.get(f"/api/journeys/{journey.id}").json()["available_seats"] == 0

    response = client.post("/api/bookings/", json=booking_payload(journey), headers=bob)
    assert response.status_code == 400
    assert response.json()["detail"] == "Only 0 seats available"

    response = client.delete(f"/api/bookings/{booking_id}", headers=alice)
    assert response.status_code == 200
    assert client.get(f"/api/journeys/{journey.id}").json()["available_seats"] == 2

    response = client.post("/api/bookings/", json=booking_payload(journey), headers=bob)
    assert response.status_code == 201


def test_booking_errors_map_to_status_codes(client, make_journey, users, auth_headers):
    journey = make_journey(total_seats=3)
    past = make_journey(departs_in=timedelta(hours=-1))
    alice = auth_headers(users["alice"])

    response = client.post("/api/bookings/", json=booking_payload(journey, pickup=(0.0, 0.0)), headers=alice)
    assert response.status_code == 400
    assert "Jakarta" in response.json()["detail"]

    assert client.post("/api/bookings/", json=booking_payload(past), headers=alice).status_code == 400

    assert client.post("/api/bookings/", json=booking_payload(journey), headers=alice).status_code == 201
    response = client.post("/api/bookings/", json=booking_payload(journey), headers=alice)
    assert response.status_code == 409
    assert response.json()["detail"] == "You already have a booking for this journey"


def test_booking_rejects_malformed_input(client, make_journey, users, auth_headers):
    journey = make_journey()
    alice = auth_headers(users["alice"])

    assert client.post("/api/bookings/", json=booking_payload(journey, seats=0), headers=alice).status_code == 422
    assert client.post(
        "/api/bookings/", json=booking_payload(journey, pickup=(95.0, 0.0)), headers=alice
    ).status_code == 422


def test_only_travellers_can_book(client, make_journey, users, auth_headers):
    journey = make_journey()
    for role in ("admin", "driver"):
        response = client.post("/api/bookings/", json=booking_payload(journey), headers=auth_headers(users[role]))
        assert response.status_code == 403


def test_my_bookings_and_cancel_rules(client, make_journey, users, auth_headers):
    journey = make_journey(total_seats=3)
    alice, bob = auth_headers(users["alice"]), auth_headers(users["bob"])
    booking_id = client.post("/api/bookings/", json=booking_payload(journey), headers=alice).json()["id"]

    mine = client.get("/api/bookings/", headers=alice).json()
    assert [b["id"] for b in mine] == [booking_id]
    assert mine[0]["origin_city"] == "Jakarta"
    assert client.get("/api/bookings/", headers=bob).json() == []

    assert client.delete(f"/api/bookings/{booking_id}", headers=bob).status_code == 403
    assert client.delete(f"/api/bookings/{booking_id}", headers=alice).status_code == 200
    assert client.delete(f"/api/bookings/{booking_id}", headers=alice).status_code == 409

    cancelled = client.get("/api/bookings/", params={"status": "cancelled"}, headers=alice).json()
    assert cancelled[0]["status"] == "cancelled"
    assert client.get("/api/bookings/", params={"status": "active"}, headers=alice).json() == []


def test_driver_sees_assigned_journeys_and_passengers(client, make_journey, users, auth_headers):
    assigned = make_journey(total_seats=3, driver=users["driver"])
    other = make_journey(total_seats=3)
    client.post("/api/bookings/", json=booking_payload(assigned, seats=2), headers=auth_headers(users["alice"]))
    driver = auth_headers(users["driver"])

    journeys = client.get("/api/driver/journeys", headers=driver).json()
    assert [(j["id"], j["booked_seats"]) for j in journeys] == [(str(assigned.id), 2)]

    response = client.get(f"/api/driver/journeys/{assigned.id}/passengers", headers=driver)
    assert response.status_code == 200
    passengers = response.json()["passengers"]
    assert [(p["passenger_name"], p["seats"]) for p in passengers] == [("Alice", 2)]

    assert client.get(f"/api/driver/journeys/{other.id}/passengers", headers=driver).status_code == 403
    assert client.get("/api/driver/journeys", headers=auth_headers(users["alice"])).status_code == 403


def test_admin_journey_management(client, cities, users, auth_headers):
    admin = auth_headers(users["admin"])
    payload = {
        "origin_city_id": cities["bandung"].id,
        "destination_city_id": cities["jakarta"].id,
        "departure_time": (NOW + timedelta(days=1)).isoformat(),
        "total_seats": 12,
    }

    response = client.post("/api/admin/journeys", json=payload, headers=admin)
    assert response.status_code == 201
    journey = response.json()
    assert (journey["origin_city"], journey["available_seats"]) == ("Bandung", 12)

    response = client.put(f"/api/admin/journeys/{journey['id']}", json={"total_seats": 20}, headers=admin)
    assert response.json()["total_seats"] == 20

    response = client.post(
        f"/api/admin/journeys/{journey['id']}/assign-driver",
        json={"driver_id": str(users["driver"].id)},
        headers=admin
    )
    assert response.json()["driver"]["name"] == "Dewi Driver"

    response = client.delete(f"/api/admin/journeys/{journey['id']}/driver", headers=admin)
    assert response.json()["driver"] is None

    assert len(client.get("/api/admin/journeys", headers=admin).json()) == 1
    response = client.delete(f"/api/admin/journeys/{journey['id']}", headers=admin)
    assert response.json()["bookings_removed"] == 0
    assert client.get("/api/admin/journeys", headers=admin).json() == []


@pytest.mark.parametrize("override, status_code", [
    ({"departure_time": (NOW - timedelta(hours=1)).isoformat()}, 400),
    ({"destination_city_id": None}, 400),
    ({"origin_city_id": 999}, 400),
])
def test_admin_create_journey_validation(client, cities, users, auth_headers, override, status_code):
    payload = {
        "origin_city_id": cities["jakarta"].id,
        "destination_city_id": cities["bandung"].id,
        "departure_time": (NOW + timedelta(days=1)).isoformat(),
        "total_seats": 12,
    }
    payload.update(override)
    if payload["destination_city_id"] is None:
        payload["destination_city_id"] = payload["origin_city_id"]

    response = client.post("/api/admin/journeys", json=payload, headers=auth_headers(users["admin"]))
    assert response.status_code == status_code


def test_assign_non_driver_over_http(client, make_journey, users, auth_headers):
    journey = make_journey()
    response = client.post(
        f"/api/admin/journeys/{journey.id}/assign-driver",
        json={"driver_id": str(users["alice"].id)},
        headers=auth_headers(users["admin"])
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "User is not a driver"


def test_admin_routes_require_admin(client, users, auth_headers):
    for role in ("driver", "alice"):
        headers = auth_headers(users[role])
        assert client.get("/api/admin/journeys", headers=headers).status_code == 403
        assert client.get("/api/admin/users", headers=headers).status_code == 403
        assert client.get("/api/admin/bookings", headers=headers).status_code == 403


def test_admin_driver_management(client, make_journey, users, auth_headers):
    admin = auth_headers(users["admin"])

    response = client.post("/api/admin/drivers", json={
        "email": "rudi@bustravel.com", "name": "Rudi", "password": "secret123"
    }, headers=admin)
    assert response.status_code == 201
    driver_id = response.json()["id"]

    emails = {d["email"] for d in client.get("/api/admin/drivers", headers=admin).json()}
    assert emails == {"driver@bustravel.com", "rudi@bustravel.com"}

    journey = make_journey()
    client.post(f"/api/admin/journeys/{journey.id}/assign-driver", json={"driver_id": driver_id}, headers=admin)

    response = client.delete(f"/api/admin/drivers/{driver_id}", headers=admin)
    assert response.status_code == 200
    assert response.json()["journeys_unassigned"] == 1
    assert client.get(f"/api/journeys/{journey.id}").json()["has_driver"] is False

    response = client.delete(f"/api/admin/drivers/{users['alice'].id}", headers=admin)
    assert response.status_code == 400


def test_role_change_cascades_over_http(client, make_journey, users, auth_headers):
    admin = auth_headers(users["admin"])
    journey = make_journey(total_seats=3)
    client.post("/api/bookings/", json=booking_payload(journey, seats=2), headers=auth_headers(users["alice"]))

    response = client.put(f"/api/admin/users/{users['alice'].id}/role", json={"role": "driver"}, headers=admin)

    assert response.status_code == 200
    assert response.json()["bookings_removed"] == 1
    assert client.get(f"/api/journeys/{journey.id}").json()["available_seats"] == 3

    drivers = client.get("/api/admin/users", params={"role": "driver"}, headers=admin).json()
    assert {u["email"] for u in drivers} == {"driver@bustravel.com", "alice@bustravel.com"}


def test_demoted_user_loses_access_immediately(client, users, auth_headers):
    admin = auth_headers(users["admin"])
    alice = auth_headers(users["alice"])

    client.put(f"/api/admin/users/{users['alice'].id}/role", json={"role": "driver"}, headers=admin)

    assert client.get("/api/bookings/", headers=alice).status_code == 403
    assert client.get("/api/driver/journeys", headers=alice).status_code == 200


def test_admin_cannot_remove_self(client, users, auth_headers):
    admin = auth_headers(users["admin"])
    admin_id = users["admin"].id

    assert client.delete(f"/api/admin/users/{admin_id}", headers=admin).status_code == 403
    assert client.put(f"/api/admin/users/{admin_id}/role", json={"role": "traveller"}, headers=admin).status_code == 403


def test_delete_user_over_http(client, make_journey, users, auth_headers):
    admin = auth_headers(users["admin"])
    journey = make_journey(total_seats=3)
    client.post("/api/bookings/", json=booking_payload(journey, seats=3), headers=auth_headers(users["bob"]))

    response = client.delete(f"/api/admin/users/{users['bob'].id}", headers=admin)

    assert response.json()["bookings_removed"] == 1
    assert client.get(f"/api/journeys/{journey.id}").json()["available_seats"] == 3
    assert client.get("/api/admin/bookings", headers=admin).json() == []
    assert client.delete(f"/api/admin/users/{users['bob'].id}", headers=admin).status_code == 404


def test_admin_booking_override(client, make_journey, users, auth_headers):
    admin = auth_headers(users["admin"])
    journey = make_journey(total_seats=2)
    booking_id = client.post(
        "/api/bookings/", json=booking_payload(journey), headers=auth_headers(users["alice"])
    ).json()["id"]

    response = client.put(f"/api/admin/bookings/{booking_id}", json={
        "seats": 4, "pickup_lat": 0.0, "pickup_lng": 0.0
    }, headers=admin)
    assert response.status_code == 200
    assert (response.json()["seats"], response.json()["pickup_lat"]) == (4, 0.0)

    journeys = client.get("/api/admin/journeys", headers=admin).json()
    assert (journeys[0]["booked_seats"], journeys[0]["available_seats"]) == (4, 0)

    listed = client.get("/api/admin/bookings", params={"journey_id": str(journey.id)}, headers=admin).json()
    assert [(b["user_email"], b["seats"]) for b in listed] == [("alice@bustravel.com", 4)]

    response = client.put(f"/api/admin/bookings/{booking_id}", json={"pickup_lat": 1.0}, headers=admin)
    assert response.status_code == 400


def test_admin_sees_passengers_of_any_journey(client, make_journey, users, auth_headers):
    journey = make_journey(total_seats=3)
    client.post("/api/bookings/", json=booking_payload(journey), headers=auth_headers(users["bob"]))

    response = client.get(f"/api/admin/journeys/{journey.id}/passengers", headers=auth_headers(users["admin"]))

    assert response.status_code == 200
    assert [p["passenger_name"] for p in response.json()["passengers"]] == ["Bob"]
