from conftest import API, FUTURE_MONDAY, contact, day_after


def manual_booking(client, event, day, slot, override_rules=False, **overrides):
    return client.post(
        f"{API}/admin/bookings/",
        params={"override_rules": override_rules},
        json={"event_id": event["id"], "slot_date": day.isoformat(), "slot_time": slot, **contact(**overrides)},
    )


# ---------------------------------------------------------------------------
# Availabilities
# ---------------------------------------------------------------------------


def test_rule_keys_are_stored_canonically(availability):
    assert availability["rules"] == {
        "monday": [{"start": "09:00", "end": "12:00"}],
        "friday": [{"start": "14:00", "end": "18:00"}],
    }


def test_invalid_rules_are_rejected(client):
    bad_range = {"title": "Bad", "rules": {"monday": [{"start": "12:00", "end": "09:00"}]}}
    bad_time = {"title": "Bad", "rules": {"monday": [{"start": "9h", "end": "12:00"}]}}
    bad_day = {"title": "Bad", "rules": {"Funday": [{"start": "09:00", "end": "12:00"}]}}

    for payload in (bad_range, bad_time, bad_day):
        assert client.post(f"{API}/admin/availabilities/", json=payload).status_code == 422


def test_update_replaces_rules(client, availability):
    response = client.patch(
        f"{API}/admin/availabilities/{availability['id']}",
        json={"rules": {"Sabato": [{"start": "10:00", "end": "13:00"}]}},
    )
    assert response.status_code == 200
    assert response.json()["rules"] == {"saturday": [{"start": "10:00", "end": "13:00"}]}
    assert response.json()["title"] == availability["title"]


def test_availability_in_use_cannot_be_deleted(client, availability, event):
    response = client.delete(f"{API}/admin/availabilities/{availability['id']}")
    assert response.status_code == 409


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def test_event_validation(client, availability):
    base = {"title": "Visit", "availability_id": availability["id"]}

    assert client.post(f"{API}/admin/events/", json={**base, "duration_minutes": 0}).status_code == 422
    assert client.post(
        f"{API}/admin/events/",
        json={**base, "duration_minutes": 30, "event_type": "single_week"},
    ).status_code == 422
    assert client.post(
        f"{API}/admin/events/",
        json={**base, "duration_minutes": 30, "availability_id": "6f1b0a9e-3c1e-4c35-9d0c-2f6f4b4d9a11"},
    ).status_code == 404


def test_slugs_are_unique(client, availability, event):
    response = client.post(
        f"{API}/admin/events/",
        json={"title": "Consulenza Test", "duration_minutes": 30, "availability_id": availability["id"]},
    )
    assert response.status_code == 201
    assert response.json()["slug"] != event["slug"]
    assert response.json()["slug"].startswith("consulenza-test-")


def test_list_events(client, event):
    response = client.get(f"{API}/admin/events/", params={"search": "consulenza"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["id"] == event["id"]

    assert client.get(f"{API}/admin/events/", params={"search": "yoga"}).json()["total"] == 0


def test_event_update_keeps_window_consistent(client, event):
    url = f"{API}/admin/events/{event['id']}"
    assert client.patch(url, json={"event_type": "recurring_from"}).status_code == 422

    response = client.patch(url, json={"event_type": "recurring_from", "start_date": "2031-03-10"})
    assert response.status_code == 200
    assert response.json()["start_date"] == "2031-03-10"

    slots = client.get(f"{API}/events/{event['slug']}/slots", params={"date": FUTURE_MONDAY.isoformat()})
    assert slots.json()["slots"] == []


def test_event_update_ignores_nulls_on_required_fields(client, event):
    url = f"{API}/admin/events/{event['id']}"
    response = client.patch(
        url,
        json={
            "title": None,
            "is_active": None,
            "availability_id": None,
            "duration_minutes": None,
            "event_type": None,
            "location": None,
        },
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["title"] == event["title"]
    assert body["is_active"] is True
    assert body["availability_id"] == event["availability_id"]
    assert body["duration_minutes"] == 60
    assert body["event_type"] == "always"
    # Optional details can still be cleared
    assert body["location"] is None


def test_event_with_future_bookings_needs_force_to_delete(client, event):
    assert manual_booking(client, event, FUTURE_MONDAY, "09:00").status_code == 201

    url = f"{API}/admin/events/{event['id']}"
    response = client.delete(url)
    assert response.status_code == 409
    assert response.json()["detail"]["future_bookings"] == 1

    response = client.delete(url, params={"force": True})
    assert response.status_code == 200
    assert client.get(f"{API}/events/{event['slug']}").status_code == 404

    # Bookings survive and the admin tools still see the event
    assert client.get(f"{API}/admin/bookings/").json()["total"] == 1
    slots = client.get(f"{API}/admin/events/{event['id']}/slots", params={"date": FUTURE_MONDAY.isoformat()})
    assert slots.json()["slots"] == ["10:00", "11:00"]


def test_admin_calendar_matches_public_calendar(client, event):
    params = {"year": 2031, "month": 3}
    admin = client.get(f"{API}/admin/events/{event['id']}/calendar", params=params).json()
    public = client.get(f"{API}/events/{event['slug']}/calendar", params=params).json()
    assert admin["days"] == public["days"]


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


def test_manual_booking_follows_the_rules_unless_overridden(client, event):
    tuesday = day_after(FUTURE_MONDAY, 1)
    assert manual_booking(client, event, tuesday, "09:30").status_code == 422

    response = manual_booking(client, event, tuesday, "09:30", override_rules=True)
    assert response.status_code == 201
    assert response.json()["end_time"] == "2031-03-04T10:30:00"

    # Overriding the rules never allows a double booking
    assert manual_booking(client, event, tuesday, "10:00", override_rules=True).status_code == 409


def test_moving_a_booking(client, event):
    booking = manual_booking(client, event, FUTURE_MONDAY, "09:00").json()
    url = f"{API}/admin/bookings/{booking['id']}"

    response = client.patch(url, json={"start_time": "2031-03-03T11:00:00"})
    assert response.status_code == 200
    assert response.json()["start_time"] == "2031-03-03T11:00:00"
    assert response.json()["end_time"] == "2031-03-03T12:00:00"

    slots = client.get(f"{API}/events/{event['slug']}/slots", params={"date": FUTURE_MONDAY.isoformat()})
    assert slots.json()["slots"] == ["09:00", "10:00"]


def test_moving_a_booking_ignores_its_own_interval(client, event):
    booking = manual_booking(client, event, FUTURE_MONDAY, "10:00").json()

    response = client.patch(
        f"{API}/admin/bookings/{booking['id']}",
        params={"override_rules": True},
        json={"start_time": "2031-03-03T10:30:00"},
    )
    assert response.status_code == 200
    assert response.json()["end_time"] == "2031-03-03T11:30:00"


def test_moving_onto_another_booking_is_a_conflict(client, event):
    first = manual_booking(client, event, FUTURE_MONDAY, "09:00").json()
    second = manual_booking(client, event, FUTURE_MONDAY, "11:00", user_name="Luigi").json()

    response = client.patch(
        f"{API}/admin/bookings/{second['id']}",
        json={"start_time": "2031-03-03T09:00:00", "user_phone": "+390000000"},
    )
    assert response.status_code == 409
    assert response.json()["detail"]["conflicting_booking_id"] == first["id"]

    # Nothing from the rejected edit was saved
    unchanged = client.get(f"{API}/admin/bookings/{second['id']}").json()
    assert unchanged["start_time"] == "2031-03-03T11:00:00"
    assert unchanged["user_phone"] == second["user_phone"]


def test_utc_start_times_are_converted_to_business_time(client, event):
    booking = manual_booking(client, event, FUTURE_MONDAY, "09:00").json()

    # Europe/Rome is UTC+1 in early March
    response = client.patch(
        f"{API}/admin/bookings/{booking['id']}",
        json={"start_time": "2031-03-03T10:00:00.000Z"},
    )
    assert response.status_code == 200
    assert response.json()["start_time"] == "2031-03-03T11:00:00"


def test_editing_contact_details_only(client, event):
    booking = manual_booking(client, event, FUTURE_MONDAY, "09:00").json()

    response = client.patch(
        f"{API}/admin/bookings/{booking['id']}",
        json={"user_surname": "Bianchi", "user_name": None, "user_email": None},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["user_surname"] == "Bianchi"
    assert body["user_name"] == "Mario"
    assert body["user_email"] is None
    assert body["start_time"] == booking["start_time"]


def test_list_and_filter_bookings(client, event):
    manual_booking(client, event, FUTURE_MONDAY, "09:00", user_surname="Verdi")
    manual_booking(client, event, FUTURE_MONDAY, "10:00", user_surname="Neri")

    url = f"{API}/admin/bookings/"
    body = client.get(url).json()
    assert body["total"] == 2
    # Most recent start first
    assert [b["user_surname"] for b in body["data"]] == ["Neri", "Verdi"]

    assert client.get(url, params={"search": "verdi"}).json()["total"] == 1
    assert client.get(url, params={"search": "consulenza"}).json()["total"] == 2
    assert client.get(url, params={"status": "upcoming"}).json()["total"] == 2
    assert client.get(url, params={"status": "past"}).json()["total"] == 0
    assert client.get(url, params={"status": "today"}).json()["total"] == 0
    assert client.get(url, params={"event_id": event["id"]}).json()["total"] == 2
    assert client.get(url, params={"status": "soon"}).status_code == 400


def test_deleting_a_booking_frees_its_slot(client, event):
    booking = manual_booking(client, event, FUTURE_MONDAY, "09:00").json()
    assert client.delete(f"{API}/admin/bookings/{booking['id']}").status_code == 200
    assert client.get(f"{API}/admin/bookings/{booking['id']}").status_code == 404

    slots = client.get(f"{API}/events/{event['slug']}/slots", params={"date": FUTURE_MONDAY.isoformat()})
    assert slots.json()["slots"] == ["09:00", "10:00", "11:00"]


def test_dashboard(client, event):
    manual_booking(client, event, FUTURE_MONDAY, "09:00")
    manual_booking(client, event, day_after(FUTURE_MONDAY, 4), "14:00")

    stats = client.get(f"{API}/admin/dashboard/").json()
    assert stats == {
        "total_bookings": 2,
        "active_events": 1,
        "booked_hours": 2.0,
        "today_bookings": 0,
        "upcoming_bookings": 2,
    }
