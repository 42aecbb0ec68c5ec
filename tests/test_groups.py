from datetime import datetime, timedelta, timezone

from conftest import in_days
from huddle.core.invite_codes import INVITE_CODE_ALPHABET


def test_create_group_makes_caller_owner(client, fake_db):
    user = fake_db.add_user("olivia")
    response = client.post(
        "/api/v1/groups",
        json={"name": "Book Club", "description": "Monthly reads"},
        headers=user.headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["redirect_to"] == "/groups"

    group = body["data"]
    assert group["owner_id"] == user.id
    assert len(group["invite_code"]) == 8
    assert set(group["invite_code"]) <= set(INVITE_CODE_ALPHABET)

    members = fake_db.find("group_members", group_id=group["id"])
    assert [(m["user_id"], m["role"]) for m in members] == [(user.id, "owner")]


def test_create_group_requires_login(client):
    response = client.post("/api/v1/groups", json={"name": "Book Club"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "code": "unauthenticated", "error": "Login required"}


def test_create_group_rejects_bad_token(client):
    response = client.post(
        "/api/v1/groups", json={"name": "Book Club"}, headers={"Authorization": "Bearer nope"}
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid or expired token"


def test_create_group_validates_name(client, fake_db):
    user = fake_db.add_user("olivia")
    response = client.post("/api/v1/groups", json={"name": "x"}, headers=user.headers)
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation"
    assert body["error"].startswith("name:")


def test_list_groups_only_shows_memberships(client, group, fake_db):
    stranger = fake_db.add_user("sam")
    client.post("/api/v1/groups", json={"name": "Other circle"}, headers=stranger.headers)

    response = client.get("/api/v1/groups", headers=group.member.headers)
    assert response.status_code == 200
    assert [g["id"] for g in response.json()] == [group.id]


def test_group_detail_has_role_and_count(client, group):
    response = client.get(f"/api/v1/groups/{group.id}", headers=group.admin.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["my_role"] == "admin"
    assert body["member_count"] == 3


def test_group_detail_for_outsider(client, group):
    response = client.get(f"/api/v1/groups/{group.id}", headers=group.outsider.headers)
    assert response.status_code == 403
    assert response.json()["code"] == "not_a_member"


def test_join_with_lowercase_code(client, group, fake_db):
    newcomer = fake_db.add_user("nina")
    response = client.post(
        "/api/v1/groups/join",
        json={"invite_code": f" {group.invite_code.lower()} "},
        headers=newcomer.headers,
    )
    assert response.status_code == 200
    assert response.json()["redirect_to"] == f"/groups/{group.id}"
    row = fake_db.find("group_members", group_id=group.id, user_id=newcomer.id)[0]
    assert row["role"] == "member"


def test_join_twice_is_rejected(client, group):
    response = client.post(
        "/api/v1/groups/join", json={"invite_code": group.invite_code}, headers=group.member.headers
    )
    assert response.status_code == 409
    assert response.json()["error"] == "You are already a member of this group"


def test_join_with_unknown_code(client, fake_db):
    user = fake_db.add_user("nina")
    response = client.post("/api/v1/groups/join", json={"invite_code": "ZZZZZZZZ"}, headers=user.headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Invalid invite code"


def test_join_with_expired_code(client, group, fake_db):
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    fake_db.table("groups").update({"invite_code_expires_at": yesterday}).eq("id", group.id).execute()

    newcomer = fake_db.add_user("nina")
    response = client.post(
        "/api/v1/groups/join", json={"invite_code": group.invite_code}, headers=newcomer.headers
    )
    assert response.status_code == 422
    assert response.json()["error"] == "This invite code has expired"

    preview = client.get(f"/api/v1/groups/invite/{group.invite_code}")
    assert preview.json()["expired"] is True


def test_invite_preview_is_public(client, group):
    response = client.get(f"/api/v1/groups/invite/{group.invite_code}")
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == group.id
    assert body["name"] == "Tuesday Runners"
    assert body["member_count"] == 3
    assert body["expired"] is False
    assert "invite_code" not in body


def test_update_group_permissions(client, group):
    denied = client.put(f"/api/v1/groups/{group.id}", json={"name": "Renamed"}, headers=group.member.headers)
    assert denied.status_code == 403
    assert denied.json()["code"] == "forbidden"

    allowed = client.put(f"/api/v1/groups/{group.id}", json={"name": "Renamed"}, headers=group.admin.headers)
    assert allowed.status_code == 200
    assert allowed.json()["data"]["name"] == "Renamed"
    assert allowed.json()["redirect_to"] == f"/groups/{group.id}"


def test_update_group_needs_a_field(client, group):
    response = client.put(f"/api/v1/groups/{group.id}", json={}, headers=group.owner.headers)
    assert response.status_code == 422
    assert response.json()["error"] == "Nothing to update"


def test_group_list_is_refreshed_after_update(client, group):
    assert client.get("/api/v1/groups", headers=group.member.headers).json()[0]["name"] == "Tuesday Runners"
    client.put(f"/api/v1/groups/{group.id}", json={"name": "Renamed"}, headers=group.owner.headers)
    assert client.get("/api/v1/groups", headers=group.member.headers).json()[0]["name"] == "Renamed"


def test_only_owner_deletes_group(client, group, fake_db):
    denied = client.delete(f"/api/v1/groups/{group.id}", headers=group.admin.headers)
    assert denied.status_code == 403

    deleted = client.delete(f"/api/v1/groups/{group.id}", headers=group.owner.headers)
    assert deleted.status_code == 200
    assert deleted.json()["redirect_to"] == "/groups"
    assert fake_db.find("groups", id=group.id) == []


def test_leave_group(client, group, fake_db):
    owner_leaves = client.post(f"/api/v1/groups/{group.id}/leave", headers=group.owner.headers)
    assert owner_leaves.status_code == 403

    member_leaves = client.post(f"/api/v1/groups/{group.id}/leave", headers=group.member.headers)
    assert member_leaves.status_code == 200
    assert fake_db.find("group_members", group_id=group.id, user_id=group.member.id) == []


def test_upstream_errors_hide_details(client, fake_db):
    user = fake_db.add_user("olivia")
    fake_db.failing.add("groups")
    response = client.post("/api/v1/groups", json={"name": "Book Club"}, headers=user.headers)
    assert response.status_code == 500
    assert response.json() == {"success": False, "code": "upstream", "error": "Failed to create group"}


def event_titles(client, user):
    response = client.get("/api/v1/events", headers=user.headers)
    assert response.status_code == 200
    return [e["title"] for e in response.json()["data"]]


def test_joining_shows_the_group_events(client, group, make_event, fake_db):
    make_event(title="Hill repeats")
    newcomer = fake_db.add_user("nina")
    assert event_titles(client, newcomer) == []

    client.post("/api/v1/groups/join", json={"invite_code": group.invite_code}, headers=newcomer.headers)
    assert event_titles(client, newcomer) == ["Hill repeats"]


def test_leaving_hides_the_group_events(client, group, make_event):
    make_event(title="Hill repeats")
    assert event_titles(client, group.member) == ["Hill repeats"]

    client.post(f"/api/v1/groups/{group.id}/leave", headers=group.member.headers)
    assert event_titles(client, group.member) == []


def test_deleted_group_drops_out_of_events_and_dashboard(client, group, make_event):
    make_event(title="Hill repeats", event_date=in_days(1))
    assert event_titles(client, group.member) == ["Hill repeats"]
    dashboard = client.get("/api/v1/dashboard", headers=group.member.headers).json()
    assert len(dashboard["upcoming_events"]) == 1

    client.delete(f"/api/v1/groups/{group.id}", headers=group.owner.headers)
    assert event_titles(client, group.member) == []
    dashboard = client.get("/api/v1/dashboard", headers=group.member.headers).json()
    assert dashboard["upcoming_events"] == []


def test_rename_reaches_cached_event_list(client, group, make_event):
    make_event(title="Hill repeats")
    before = client.get("/api/v1/events", headers=group.member.headers).json()["data"]
    assert before[0]["group"]["name"] == "Tuesday Runners"

    client.put(f"/api/v1/groups/{group.id}", json={"name": "Thursday Runners"}, headers=group.owner.headers)
    after = client.get("/api/v1/events", headers=group.member.headers).json()["data"]
    assert after[0]["group"]["name"] == "Thursday Runners"
