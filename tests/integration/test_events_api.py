from datetime import datetime, timedelta, timezone


def _event_payload(**overrides):
    payload = {
        "title": "Comedy Night",
        "description": "Stand-up sets from five comics.",
        "category": "Comedy",
        "dateTime": (datetime.now(timezone.utc) + timedelta(days=14)).isoformat(),
        "location": "The Habitat, Mumbai",
        "price": 599.0,
        "seatsTotal": 120,
    }
    payload.update(overrides)
    return payload


def test_admin_creates_event(client, admin_headers):
    response = client.post("/events", json=_event_payload(), headers=admin_headers())

    assert response.status_code == 201
    body = response.json()
    assert body["seatsTotal"] == 120
    assert body["seatsBooked"] == 0
    assert body["seatsAvailable"] == 120
    assert body["isActive"] is True
    assert body["isSoldOut"] is False

    fetched = client.get(f"/events/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Comedy Night"


def test_only_admins_manage_events(client, make_event, user_headers):
    event_id = make_event()

    assert client.post("/events", json=_event_payload(), headers=user_headers()).status_code == 403
    assert client.put(f"/events/{event_id}", json={"price": 1.0}, headers=user_headers()).status_code == 403
    assert client.delete(f"/events/{event_id}", headers=user_headers()).status_code == 403


def test_get_missing_event(client):
    response = client.get("/events/missing")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": {"kind": "NotFound", "message": "Event not found"},
    }


def test_update_event_fields(client, make_event, admin_headers):
    event_id = make_event(price="1000.00")

    response = client.put(
        f"/events/{event_id}",
        json={"price": 1200.0, "location": "NSCI Dome, Mumbai"},
        headers=admin_headers(),
    )

    assert response.status_code == 200
    assert response.json()["price"] == 1200.0
    assert response.json()["location"] == "NSCI Dome, Mumbai"


def test_resize_keeps_counters_consistent(client, make_event, admin_headers, user_headers):
    event_id = make_event(seats_total=10)
    client.post(
        "/bookings",
        json={"eventId": event_id, "ticketsBooked": 4},
        headers=user_headers(),
    )

    response = client.put(f"/events/{event_id}", json={"seatsTotal": 6}, headers=admin_headers())
    assert response.status_code == 200
    assert response.json()["seatsAvailable"] == 2

    response = client.put(f"/events/{event_id}", json={"seatsTotal": 3}, headers=admin_headers())
    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "InvalidState"

    event = client.get(f"/events/{event_id}").json()
    assert event["seatsTotal"] == 6
    assert event["seatsBooked"] == 4


def test_soft_delete(client, make_event, admin_headers):
    event_id = make_event()

    response = client.delete(f"/events/{event_id}", headers=admin_headers())
    assert response.status_code == 200

    listed = client.get("/events").json()
    assert event_id not in [e["id"] for e in listed["events"]]

    still_there = client.get(f"/events/{event_id}").json()
    assert still_there["isActive"] is False


def test_list_events_filters_and_sort(client, make_event):
    make_event(title="Jazz Evening", location="Blue Frog, Mumbai", category="Music", price="800.00", days_ahead=5)
    make_event(title="AI Summit", location="HICC, Hyderabad", category="Technology", price="2500.00", days_ahead=20)
    make_event(title="Food Walk", location="Old Delhi", category="Food", price="300.00", days_ahead=10)

    ascending = client.get("/events").json()
    assert [e["title"] for e in ascending["events"]] == ["Jazz Evening", "Food Walk", "AI Summit"]
    assert ascending["pagination"]["total"] == 3

    descending = client.get("/events?sortOrder=desc").json()
    assert [e["title"] for e in descending["events"]] == ["AI Summit", "Food Walk", "Jazz Evening"]

    by_price = client.get("/events?minPrice=500&maxPrice=1000").json()
    assert [e["title"] for e in by_price["events"]] == ["Jazz Evening"]

    by_city = client.get("/events?location=hyderabad").json()
    assert [e["title"] for e in by_city["events"]] == ["AI Summit"]

    paged = client.get("/events?limit=2&page=2").json()
    assert [e["title"] for e in paged["events"]] == ["AI Summit"]
    assert paged["pagination"]["pages"] == 2


def test_create_event_rejects_past_date(client, admin_headers):
    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()

    response = client.post("/events", json=_event_payload(dateTime=past), headers=admin_headers())

    assert response.status_code == 422
    assert "Event date must be in the future" in response.text
    assert client.get("/events").json()["pagination"]["total"] == 0


def test_update_event_rejects_past_date(client, make_event, admin_headers):
    event_id = make_event()
    past = (datetime.now(timezone.utc) - timedelta(days=2)).isoformat()

    response = client.put(f"/events/{event_id}", json={"dateTime": past}, headers=admin_headers())

    assert response.status_code == 422


def test_featured_flag_round_trip(client, make_event, admin_headers):
    created = client.post("/events", json=_event_payload(featured=True), headers=admin_headers()).json()
    assert created["featured"] is True

    plain_id = make_event()
    assert client.get(f"/events/{plain_id}").json()["featured"] is False

    response = client.put(f"/events/{plain_id}", json={"featured": True}, headers=admin_headers())
    assert response.json()["featured"] is True


def test_featured_list(client, make_event):
    for days in (9, 3, 7, 5, 8, 4, 6):
        make_event(title=f"Featured in {days}", featured=True, days_ahead=days)
    make_event(title="Not featured", days_ahead=1)
    make_event(title="Featured but over", featured=True, days_ahead=-1)
    make_event(title="Featured but hidden", featured=True, is_active=False, days_ahead=2)

    response = client.get("/events/featured/list")

    assert response.status_code == 200
    events = response.json()["events"]
    assert [e["title"] for e in events] == [f"Featured in {days}" for days in (3, 4, 5, 6, 7, 8)]
    assert all(e["featured"] for e in events)


def test_events_by_category(client, make_event):
    make_event(title="Late Gig", category="Music", days_ahead=12)
    make_event(title="Early Gig", category="Music", days_ahead=2)
    make_event(title="Past Gig", category="Music", days_ahead=-2)
    make_event(title="Cancelled Gig", category="Music", is_active=False)
    make_event(title="Hackathon", category="Technology")

    response = client.get("/events/category/Music")

    assert response.status_code == 200
    assert [e["title"] for e in response.json()["events"]] == ["Early Gig", "Late Gig"]
    assert client.get("/events/category/Sports").json() == {"events": []}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["success"] is True
