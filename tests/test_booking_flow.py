from __future__ import annotations

from dataclasses import replace

from fastapi.testclient import TestClient

from app import create_app
from coworking.utils.config import get_settings


TARGET_DATE = "2026-03-04"


def _build_test_settings(tmp_path, filename: str, admin_token: str | None):
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        admin_token=admin_token,
    )


def _booking_payload(**overrides) -> dict:
    payload = {
        "workspace_type": "Meeting Room",
        "date": TARGET_DATE,
        "time_slot": "09:00 AM",
        "duration": "2-hours",
        "customer_name": "Layla Hassan",
        "customer_email": "layla@example.com",
        "customer_whatsapp": "+20 111 222 3333",
    }
    payload.update(overrides)
    return payload


def test_public_catalogue_endpoints(tmp_path):
    settings = _build_test_settings(tmp_path, "catalogue.db", admin_token=None)
    with TestClient(create_app(settings)) as client:
        types_response = client.get("/workspace_types")
        assert types_response.status_code == 200
        names = [item["name"] for item in types_response.json()]
        assert names[0] == "Hot Desk"
        assert "Meeting Room" in names

        slots_response = client.get("/slots")
        assert slots_response.status_code == 200
        body = slots_response.json()
        assert body["slot_grid"] == list(settings.slot_grid)
        assert [item["value"] for item in body["durations"]] == [
            "1-hour",
            "2-hours",
            "4-hours",
            "1-day",
            "1-week",
            "1-month",
        ]


def test_booking_end_to_end_flow(tmp_path):
    admin_token = "secret-admin-token"
    settings = _build_test_settings(tmp_path, "booking_flow.db", admin_token)

    with TestClient(create_app(settings)) as client:
        open_day = client.post(
            "/availability",
            json={"workspace_type": "Meeting Room", "date": TARGET_DATE, "duration": "1-hour"},
        )
        assert open_day.status_code == 200
        assert open_day.json()["infeasible_slots"] == []
        assert open_day.json()["fully_booked"] is False

        create_response = client.post("/bookings", json=_booking_payload())
        assert create_response.status_code == 201
        booking = create_response.json()
        assert booking["status"] == "pending"
        assert booking["desk_number"] == 1
        assert booking["total_price"] == 300.0

        after_booking = client.post(
            "/availability",
            json={"workspace_type": "Meeting Room", "date": TARGET_DATE, "duration": "1-hour"},
        )
        assert after_booking.json()["infeasible_slots"] == ["09:00 AM", "10:00 AM"]
        assert "09:00 AM" not in after_booking.json()["available_slots"]

        conflict = client.post(
            "/bookings",
            json=_booking_payload(time_slot="10:00 AM", duration="1-hour", customer_email="sam@example.com"),
        )
        assert conflict.status_code == 409

        fetched = client.get(f"/bookings/{booking['booking_id']}")
        assert fetched.status_code == 200
        assert fetched.json()["customer_email"] == "layla@example.com"

        unauthorized = client.get("/admin/bookings")
        assert unauthorized.status_code == 401

        bad_login = client.post("/login", json={"admin_token": "wrong-token"})
        assert bad_login.status_code == 401

        login_response = client.post("/login", json={"admin_token": admin_token})
        assert login_response.status_code == 200
        headers = {"Authorization": f"Bearer {login_response.json()['access_token']}"}

        listing = client.get("/admin/bookings", params={"status": "pending"}, headers=headers)
        assert listing.status_code == 200
        assert [item["booking_id"] for item in listing.json()] == [booking["booking_id"]]

        confirm = client.post(
            f"/admin/bookings/{booking['booking_id']}/status",
            json={"status": "confirmed"},
            headers=headers,
        )
        assert confirm.status_code == 200
        assert confirm.json()["status"] == "confirmed"

        backwards = client.post(
            f"/admin/bookings/{booking['booking_id']}/status",
            json={"status": "pending"},
            headers=headers,
        )
        assert backwards.status_code == 409

        customer_cancel = client.post(
            f"/bookings/{booking['booking_id']}/cancel",
            json={"customer_email": "layla@example.com"},
        )
        assert customer_cancel.status_code == 409

        utilisation = client.get(
            "/admin/utilisation",
            params={"workspace_type": "Meeting Room", "date": TARGET_DATE},
            headers=headers,
        )
        assert utilisation.status_code == 200
        utilisation_body = utilisation.json()
        assert utilisation_body["active_bookings"] == 1
        assert utilisation_body["occupancy_rate"] == 0.2
        occupied = [row["time_slot"] for row in utilisation_body["slots"] if row["occupied_desks"]]
        assert occupied == ["09:00 AM", "10:00 AM"]

        cancel = client.post(
            f"/admin/bookings/{booking['booking_id']}/status",
            json={"status": "cancelled"},
            headers=headers,
        )
        assert cancel.status_code == 200

        reopened = client.post(
            "/availability",
            json={"workspace_type": "Meeting Room", "date": TARGET_DATE, "duration": "1-hour"},
        )
        assert reopened.json()["infeasible_slots"] == []

        logout = client.post("/logout", headers=headers)
        assert logout.status_code == 204
        after_logout = client.get("/admin/bookings", headers=headers)
        assert after_logout.status_code == 401


def test_staff_can_book_on_behalf_of_client(tmp_path):
    admin_token = "staff-token"
    settings = _build_test_settings(tmp_path, "staff_booking.db", admin_token)
    with TestClient(create_app(settings)) as client:
        login_response = client.post("/login", json={"admin_token": admin_token})
        headers = {"Authorization": f"Bearer {login_response.json()['access_token']}"}

        created = client.post(
            "/admin/bookings",
            json=_booking_payload(workspace_type="Hot Desk", duration="1-day", time_slot="08:00 AM"),
            headers=headers,
        )
        assert created.status_code == 201
        assert created.json()["total_price"] == 50.0

        listing = client.get(
            "/admin/bookings",
            params={"workspace_type": "Hot Desk", "date": TARGET_DATE},
            headers=headers,
        )
        assert len(listing.json()) == 1


def test_customer_cancellation_and_ownership(tmp_path):
    settings = _build_test_settings(tmp_path, "customer_cancel.db", admin_token=None)
    with TestClient(create_app(settings)) as client:
        booking = client.post("/bookings", json=_booking_payload()).json()

        wrong_owner = client.post(
            f"/bookings/{booking['booking_id']}/cancel",
            json={"customer_email": "someone@example.com"},
        )
        assert wrong_owner.status_code == 403

        cancelled = client.post(
            f"/bookings/{booking['booking_id']}/cancel",
            json={"customer_email": "layla@example.com"},
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"


def test_customer_lists_own_bookings_by_email(tmp_path):
    settings = _build_test_settings(tmp_path, "customer_listing.db", admin_token="staff-only")
    with TestClient(create_app(settings)) as client:
        first = client.post("/bookings", json=_booking_payload()).json()
        client.post(
            "/bookings",
            json=_booking_payload(time_slot="01:00 PM", duration="1-hour"),
        )
        client.post(
            "/bookings",
            json=_booking_payload(time_slot="03:00 PM", duration="1-hour", customer_email="sam@example.com"),
        )
        client.post(
            f"/bookings/{first['booking_id']}/cancel",
            json={"customer_email": "layla@example.com"},
        )

        mine = client.get("/bookings", params={"customer_email": "LAYLA@example.com"})
        assert mine.status_code == 200
        assert len(mine.json()) == 2
        assert {item["customer_email"] for item in mine.json()} == {"layla@example.com"}

        cancelled = client.get(
            "/bookings",
            params={"customer_email": "layla@example.com", "status": "cancelled"},
        )
        assert [item["booking_id"] for item in cancelled.json()] == [first["booking_id"]]

        nobody = client.get("/bookings", params={"customer_email": "nobody@example.com"})
        assert nobody.status_code == 200
        assert nobody.json() == []

        missing_email = client.get("/bookings")
        assert missing_email.status_code == 422


def test_staff_can_reschedule_a_booking(tmp_path):
    admin_token = "reschedule-token"
    settings = _build_test_settings(tmp_path, "reschedule.db", admin_token)
    with TestClient(create_app(settings)) as client:
        login_response = client.post("/login", json={"admin_token": admin_token})
        headers = {"Authorization": f"Bearer {login_response.json()['access_token']}"}

        booking = client.post("/bookings", json=_booking_payload()).json()
        other = client.post(
            "/bookings",
            json=_booking_payload(time_slot="02:00 PM", duration="1-hour", customer_email="sam@example.com"),
        ).json()

        unauthorized = client.patch(
            f"/admin/bookings/{booking['booking_id']}",
            json={"time_slot": "11:00 AM"},
        )
        assert unauthorized.status_code == 401

        moved = client.patch(
            f"/admin/bookings/{booking['booking_id']}",
            json={"date": "2026-03-05", "time_slot": "11:00 AM", "customer_name": "Layla H."},
            headers=headers,
        )
        assert moved.status_code == 200
        assert moved.json()["date"] == "2026-03-05"
        assert moved.json()["time_slot"] == "11:00 AM"
        assert moved.json()["customer_name"] == "Layla H."
        assert moved.json()["desk_number"] == 1

        old_day = client.post(
            "/availability",
            json={"workspace_type": "Meeting Room", "date": TARGET_DATE, "duration": "1-hour"},
        )
        assert old_day.json()["infeasible_slots"] == ["02:00 PM"]

        clash = client.patch(
            f"/admin/bookings/{other['booking_id']}",
            json={"date": "2026-03-05", "time_slot": "12:00 PM"},
            headers=headers,
        )
        assert clash.status_code == 409

        missing = client.patch("/admin/bookings/404", json={"time_slot": "11:00 AM"}, headers=headers)
        assert missing.status_code == 404


def test_request_errors_map_to_http_status(tmp_path):
    settings = _build_test_settings(tmp_path, "errors.db", admin_token=None)
    with TestClient(create_app(settings)) as client:
        unknown_type = client.post(
            "/availability",
            json={"workspace_type": "Rooftop", "date": TARGET_DATE, "duration": "1-hour"},
        )
        assert unknown_type.status_code == 404

        malformed_date = client.post(
            "/availability",
            json={"workspace_type": "Hot Desk", "date": "04-03-2026", "duration": "1-hour"},
        )
        assert malformed_date.status_code == 422

        unknown_duration_check = client.post(
            "/availability",
            json={"workspace_type": "Hot Desk", "date": TARGET_DATE, "duration": "fortnight"},
        )
        assert unknown_duration_check.status_code == 200
        assert unknown_duration_check.json()["required_hours"] == 1

        unknown_duration_booking = client.post(
            "/bookings",
            json=_booking_payload(duration="fortnight"),
        )
        assert unknown_duration_booking.status_code == 400

        week_booking = client.post("/bookings", json=_booking_payload(duration="1-week"))
        assert week_booking.status_code == 409

        missing = client.get("/bookings/404")
        assert missing.status_code == 404

        open_admin = client.get("/admin/bookings")
        assert open_admin.status_code == 200
