"""
Project endpoint tests: the creation form, listing, detail and invitations.
"""

import pytest

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# ---------------------------------------------------------------------------
# Creation form
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_form_status_options(api, client):
    headers = await api.register("Ada Admin", "ada@example.com")

    resp = await client.get("/api/v1/projects/create", headers=headers)

    assert resp.status_code == 200
    assert resp.json()["status_options"] == [
        {"value": "pending", "label": "Pending"},
        {"value": "in_progress", "label": "In Progress"},
        {"value": "completed", "label": "Completed"},
    ]


@pytest.mark.asyncio
async def test_create_project_makes_creator_manager(api, client):
    headers = await api.register("Ada Admin", "ada@example.com")

    resp = await client.post(
        "/api/v1/projects",
        data={
            "name": "Apollo",
            "description": "",
            "due_date": "2026-12-31T00:00:00",
            "status": "pending",
        },
        headers=headers,
    )

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["message"] == "Project created successfully."
    project = body["project"]
    assert project["role"] == "manager"
    assert project["description"] is None
    assert project["due_date"].startswith("2026-12-31")
    assert project["image_url"] is None

    resp = await client.get(f"/api/v1/projects/{project['id']}", headers=headers)
    assert resp.json()["can_manage_tasks"] is True
    assert resp.json()["can_invite"] is True
    assert [m["status"] for m in resp.json()["members"]] == ["accepted"]

    resp = await client.get(f"/api/v1/tasks/projects/{project['id']}/statuses", headers=headers)
    assert [s["name"] for s in resp.json()["status_options"]] == ["To Do", "In Progress", "Completed"]


@pytest.mark.asyncio
async def test_create_project_from_multipart_form_without_image(api, client):
    headers = await api.register("Ada Admin", "ada@example.com")

    resp = await client.post(
        "/api/v1/projects",
        files={
            "name": (None, b"Apollo"),
            "status": (None, b"pending"),
            "description": (None, b"Moon shot"),
        },
        headers=headers,
    )

    assert resp.status_code == 201, resp.text
    project = resp.json()["project"]
    assert project["name"] == "Apollo"
    assert project["status"] == "pending"
    assert project["description"] == "Moon shot"
    assert project["image_url"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "form, field",
    [
        ({"status": "pending"}, "name"),
        ({"name": "x" * 256, "status": "pending"}, "name"),
        ({"name": "Apollo"}, "status"),
        ({"name": "Apollo", "status": "archived"}, "status"),
        ({"name": "Apollo", "status": "pending", "due_date": "not a date"}, "due_date"),
    ],
)
async def test_create_project_validation(api, client, form, field):
    headers = await api.register("Ada Admin", "ada@example.com")

    resp = await client.post("/api/v1/projects", data=form, headers=headers)

    assert resp.status_code == 422
    assert ["body", field] in [error["loc"] for error in resp.json()["detail"]]


@pytest.mark.asyncio
async def test_create_project_with_image(api, client, storage):
    headers = await api.register("Ada Admin", "ada@example.com")

    resp = await client.post(
        "/api/v1/projects",
        data={"name": "Apollo", "status": "in_progress"},
        files={"image": ("cover.png", PNG, "image/png")},
        headers=headers,
    )

    assert resp.status_code == 201, resp.text
    assert resp.json()["project"]["image_url"].startswith("/storage/project_images/")
    assert list(storage.files.values()) == [PNG]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "upload",
    [
        ("cover.gif", b"GIF89a", "image/gif"),
        ("cover.png", b"0" * (2048 * 1024 + 1), "image/png"),
    ],
)
async def test_create_project_rejects_bad_images(api, client, storage, upload):
    headers = await api.register("Ada Admin", "ada@example.com")

    resp = await client.post(
        "/api/v1/projects",
        data={"name": "Apollo", "status": "in_progress"},
        files={"image": upload},
        headers=headers,
    )

    assert resp.status_code == 422
    assert resp.json()["detail"][0]["loc"] == ["body", "image"]
    assert storage.files == {}


# ---------------------------------------------------------------------------
# Listing / detail
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_listing_only_shows_accepted_projects(api, client):
    manager = await api.register("Maria Manager", "manager@example.com")
    invitee = await api.register("Ivan Invitee", "ivan@example.com")
    project = await api.create_project(manager, name="Apollo")

    resp = await client.post(
        f"/api/v1/projects/{project['id']}/invitations",
        json={"email": "ivan@example.com"},
        headers=manager,
    )
    assert resp.status_code == 201
    assert resp.json()["member"]["status"] == "pending"

    resp = await client.get("/api/v1/projects", headers=invitee)
    assert resp.json()["total"] == 0

    resp = await client.get(f"/api/v1/projects/{project['id']}", headers=invitee)
    assert resp.status_code == 403

    resp = await client.post(f"/api/v1/projects/{project['id']}/invitations/accept", headers=invitee)
    assert resp.status_code == 200
    assert resp.json()["member"]["status"] == "accepted"

    resp = await client.get("/api/v1/projects", headers=invitee)
    assert [(p["name"], p["role"]) for p in resp.json()["projects"]] == [("Apollo", "member")]


@pytest.mark.asyncio
async def test_detail_for_member(client, team):
    resp = await client.get(f"/api/v1/projects/{team['project']['id']}", headers=team["member"])

    assert resp.status_code == 200
    body = resp.json()
    assert body["can_manage_tasks"] is False
    assert body["can_invite"] is False
    assert body["project"]["role"] == "member"
    assert len(body["members"]) == 3


@pytest.mark.asyncio
async def test_detail_for_outsider_is_forbidden(client, team):
    resp = await client.get(f"/api/v1/projects/{team['project']['id']}", headers=team["outsider"])

    assert resp.status_code == 403
    assert resp.json()["detail"]["message"] == "You are not authorized to view this project."


@pytest.mark.asyncio
async def test_unknown_project_is_404(client, team):
    resp = await client.get(
        "/api/v1/projects/00000000-0000-0000-0000-000000000000", headers=team["manager"]
    )

    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "PROJECT_NOT_FOUND"


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_only_managers_invite(client, team):
    resp = await client.post(
        f"/api/v1/projects/{team['project']['id']}/invitations",
        json={"email": "outsider@example.com"},
        headers=team["member"],
    )

    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_invite_unknown_email(client, team):
    resp = await client.post(
        f"/api/v1/projects/{team['project']['id']}/invitations",
        json={"email": "nobody@example.com"},
        headers=team["manager"],
    )

    assert resp.status_code == 422
    assert resp.json()["detail"][0]["loc"] == ["body", "email"]


@pytest.mark.asyncio
async def test_invite_existing_member_conflicts(client, team):
    resp = await client.post(
        f"/api/v1/projects/{team['project']['id']}/invitations",
        json={"email": "member@example.com"},
        headers=team["manager"],
    )

    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "ALREADY_INVITED"


@pytest.mark.asyncio
async def test_declined_invitation_grants_nothing(client, team):
    project_id = team["project"]["id"]
    resp = await client.post(
        f"/api/v1/projects/{project_id}/invitations",
        json={"email": "outsider@example.com", "role": "manager"},
        headers=team["manager"],
    )
    assert resp.status_code == 201

    resp = await client.post(
        f"/api/v1/projects/{project_id}/invitations/decline", headers=team["outsider"]
    )
    assert resp.status_code == 200
    assert resp.json()["member"]["status"] == "declined"

    resp = await client.get(f"/api/v1/projects/{project_id}/labels", headers=team["outsider"])
    assert resp.status_code == 403

    resp = await client.post(
        f"/api/v1/projects/{project_id}/invitations/accept", headers=team["outsider"]
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "INVITATION_NOT_FOUND"
