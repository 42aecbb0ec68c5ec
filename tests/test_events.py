from conftest import in_days


def test_create_event(client, group, fake_db):
    response = client.post(
        f"/api/v1/groups/{group.id}/events",
        json={"title": "Trail run", "event_date": in_days(3), "location": "", "max_participants": 10},
        headers=group.admin.headers,
    )
    assert response.status_code == 201
    body = response.json()
    event = body["data"]
    assert event["status"] == "scheduled"
    assert event["created_by"] == group.admin.id
    assert event["location"] is None
    assert event["cost"] == 0
    assert body["redirect_to"] == f"/groups/{group.id}/events/{event['id']}"
    assert len(fake_db.find("events", group_id=group.id)) == 1


def test_member_cannot_create_event(client, group):
    response = client.post(
        f"/api/v1/groups/{group.id}/events",
        json={"title": "Trail run", "event_date": in_days(3)},
        headers=group.member.headers,
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Only owners and admins can create events"


def test_event_field_bounds(client, group):
    for body in (
        {"title": "T", "event_date": in_days(3)},
        {"title": "Trail run", "event_date": in_days(3), "max_participants": 0},
        {"title": "Trail run", "event_date": in_days(3), "cost": -1},
        {"title": "Trail run"},
    ):
        response = client.post(f"/api/v1/groups/{group.id}/events", json=body, headers=group.owner.headers)
        assert response.status_code == 422, body
        assert response.json()["code"] == "validation"


def test_get_event_includes_group(client, group, make_event):
    event = make_event()
    response = client.get(f"/api/v1/events/{event['id']}", headers=group.member.headers)
    assert response.status_code == 200
    assert response.json()["group"]["name"] == "Tuesday Runners"

    hidden = client.get(f"/api/v1/events/{event['id']}", headers=group.outsider.headers)
    assert hidden.status_code == 403

    missing = client.get("/api/v1/events/nope", headers=group.member.headers)
    assert missing.status_code == 404


def test_creator_and_admins_manage_event(client, group, make_event, fake_db):
    event = make_event()

    denied = client.put(f"/api/v1/events/{event['id']}", json={"title": "Hill run"}, headers=group.member.headers)
    assert denied.status_code == 403

    updated = client.put(f"/api/v1/events/{event['id']}", json={"title": "Hill run"}, headers=group.admin.headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["title"] == "Hill run"

    # a member who created the event (e.g. before being demoted) may still manage it
    fake_db.table("events").update({"created_by": group.member.id}).eq("id", event["id"]).execute()
    own = client.put(f"/api/v1/events/{event['id']}", json={"cost": 500}, headers=group.member.headers)
    assert own.status_code == 200
    assert own.json()["data"]["cost"] == 500


def test_update_event_needs_a_field(client, group, make_event):
    event = make_event()
    response = client.put(f"/api/v1/events/{event['id']}", json={}, headers=group.owner.headers)
    assert response.status_code == 422


def test_delete_event(client, group, make_event, fake_db):
    event = make_event()
    response = client.delete(f"/api/v1/events/{event['id']}", headers=group.owner.headers)
    assert response.status_code == 200
    assert response.json()["redirect_to"] == f"/groups/{group.id}"
    assert fake_db.find("events", id=event["id"]) == []


def test_status_change(client, group, make_event):
    event = make_event()
    response = client.put(
        f"/api/v1/events/{event['id']}/status", json={"status": "cancelled"}, headers=group.admin.headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "cancelled"

    bogus = client.put(
        f"/api/v1/events/{event['id']}/status", json={"status": "postponed"}, headers=group.admin.headers
    )
    assert bogus.status_code == 422


def test_group_events_sorted_by_date(client, group, make_event):
    later = make_event(title="Later", event_date=in_days(10))
    sooner = make_event(title="Sooner", event_date=in_days(2))
    response = client.get(f"/api/v1/groups/{group.id}/events", headers=group.member.headers)
    assert [e["id"] for e in response.json()] == [sooner["id"], later["id"]]


def test_my_events_cursor_pages(client, group, make_event):
    created = [make_event(title=f"Run {i}", event_date=in_days(i + 1)) for i in range(3)]

    first = client.get("/api/v1/events?limit=2", headers=group.member.headers).json()
    assert [e["id"] for e in first["data"]] == [created[0]["id"], created[1]["id"]]
    assert first["next_cursor"] == created[1]["id"]
    assert first["data"][0]["group"]["id"] == group.id

    second = client.get(
        f"/api/v1/events?limit=2&cursor={first['next_cursor']}", headers=group.member.headers
    ).json()
    assert [e["id"] for e in second["data"]] == [created[2]["id"]]
    assert second["next_cursor"] is None


def test_unknown_cursor_starts_over(client, group, make_event):
    event = make_event()
    page = client.get("/api/v1/events?cursor=unknown", headers=group.member.headers).json()
    assert [e["id"] for e in page["data"]] == [event["id"]]


def test_my_events_empty_without_groups(client, fake_db):
    loner = fake_db.add_user("lonely")
    page = client.get("/api/v1/events", headers=loner.headers).json()
    assert page == {"data": [], "next_cursor": None}


def test_upcoming_skips_past_and_cancelled(client, group, make_event):
    past = make_event(title="Yesterday", event_date=in_days(-1))
    cancelled = make_event(title="Called off", event_date=in_days(2))
    upcoming = make_event(title="Next week", event_date=in_days(7))
    client.put(f"/api/v1/events/{cancelled['id']}/status", json={"status": "cancelled"}, headers=group.owner.headers)

    response = client.get("/api/v1/events/upcoming", headers=group.member.headers)
    ids = [e["id"] for e in response.json()]
    assert ids == [upcoming["id"]]
    assert past["id"] not in ids


def test_event_list_refreshes_after_create(client, group, make_event):
    make_event(title="First")
    assert len(client.get("/api/v1/events", headers=group.member.headers).json()["data"]) == 1
    make_event(title="Second")
    assert len(client.get("/api/v1/events", headers=group.member.headers).json()["data"]) == 2


def test_attendance_stats(client, group, make_event):
    event = make_event()
    client.post(f"/api/v1/events/{event['id']}/participants", json={"status": "attending"}, headers=group.owner.headers)
    client.post(f"/api/v1/events/{event['id']}/participants", json={"status": "maybe"}, headers=group.member.headers)

    response = client.get(f"/api/v1/events/{event['id']}/stats", headers=group.member.headers)
    assert response.status_code == 200
    assert response.json() == {
        "attending": 1,
        "not_attending": 0,
        "maybe": 1,
        "total": 2,
        "attendance_rate": 33.3,
        "response_rate": 66.7,
        "event_id": event["id"],
        "total_members": 3,
        "summary": "1 attending • 1 maybe",
        "attendance_rate_label": "33.3%",
    }
