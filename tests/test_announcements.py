CONTENT = "Bring water and a headlamp please."


def post_announcement(client, group, user, **fields):
    body = {"title": "Heads up", "content": CONTENT, **fields}
    return client.post(f"/api/v1/groups/{group.id}/announcements", json=body, headers=user.headers)


def test_admin_posts_group_announcement(client, group):
    response = post_announcement(client, group, group.admin)
    assert response.status_code == 201
    body = response.json()
    assert body["data"]["author_id"] == group.admin.id
    assert body["data"]["event_id"] is None
    assert body["redirect_to"] == f"/groups/{group.id}/announcements"


def test_member_cannot_post(client, group):
    response = post_announcement(client, group, group.member)
    assert response.status_code == 403


def test_content_bounds(client, group):
    response = post_announcement(client, group, group.owner, content="short")
    assert response.status_code == 422
    assert response.json()["error"].startswith("content:")


def test_event_announcement(client, group, make_event):
    event = make_event()
    response = post_announcement(client, group, group.owner, event_id=event["id"])
    assert response.status_code == 201
    assert response.json()["redirect_to"] == f"/groups/{group.id}/events/{event['id']}"

    listed = client.get(f"/api/v1/events/{event['id']}/announcements", headers=group.member.headers).json()
    assert [a["title"] for a in listed] == ["Heads up"]

    # event announcements stay off the group board
    board = client.get(f"/api/v1/groups/{group.id}/announcements", headers=group.member.headers).json()
    assert board == []


def test_event_from_another_group_is_rejected(client, group, fake_db):
    other_owner = fake_db.add_user("otto")
    other = client.post("/api/v1/groups", json={"name": "Other circle"}, headers=other_owner.headers).json()["data"]
    foreign = client.post(
        f"/api/v1/groups/{other['id']}/events",
        json={"title": "Elsewhere", "event_date": "2030-01-01T10:00:00Z"},
        headers=other_owner.headers,
    ).json()["data"]

    response = post_announcement(client, group, group.owner, event_id=foreign["id"])
    assert response.status_code == 422


def test_group_board_newest_first_with_authors(client, group):
    post_announcement(client, group, group.owner, title="First")
    post_announcement(client, group, group.admin, title="Second")

    board = client.get(f"/api/v1/groups/{group.id}/announcements", headers=group.member.headers).json()
    assert [a["title"] for a in board] == ["Second", "First"]
    assert board[0]["author"]["full_name"] == "Adam"

    limited = client.get(f"/api/v1/groups/{group.id}/announcements?limit=1", headers=group.member.headers).json()
    assert len(limited) == 1


def test_author_or_admin_edits(client, group, fake_db):
    created = post_announcement(client, group, group.admin).json()["data"]

    denied = client.put(
        f"/api/v1/announcements/{created['id']}", json={"title": "Edited"}, headers=group.member.headers
    )
    assert denied.status_code == 403

    edited = client.put(
        f"/api/v1/announcements/{created['id']}", json={"title": "Edited"}, headers=group.owner.headers
    )
    assert edited.status_code == 200
    assert edited.json()["data"]["title"] == "Edited"

    deleted = client.delete(f"/api/v1/announcements/{created['id']}", headers=group.admin.headers)
    assert deleted.status_code == 200
    assert fake_db.find("announcements", id=created["id"]) == []


def test_get_announcement(client, group):
    created = post_announcement(client, group, group.owner).json()["data"]
    response = client.get(f"/api/v1/announcements/{created['id']}", headers=group.member.headers)
    assert response.status_code == 200
    assert response.json()["author"]["id"] == group.owner.id

    assert client.get(f"/api/v1/announcements/{created['id']}", headers=group.outsider.headers).status_code == 403
    assert client.get("/api/v1/announcements/missing", headers=group.member.headers).status_code == 404


def test_recent_announcements_carry_group_name(client, group):
    post_announcement(client, group, group.owner)
    recent = client.get("/api/v1/announcements/recent", headers=group.member.headers).json()
    assert len(recent) == 1
    assert recent[0]["group_name"] == "Tuesday Runners"

    assert client.get("/api/v1/announcements/recent", headers=group.outsider.headers).json() == []
