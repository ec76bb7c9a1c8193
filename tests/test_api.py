"""HTTP-level tests: routing, status codes, the error envelope and the full flow."""
from datetime import datetime, timedelta

from app.models.enums import UserRole

from conftest import PASSWORD


async def register(client, username, role=None, **extra):
    payload = {"username": username, "email": f"{username}@example.com", "password": PASSWORD, **extra}
    if role:
        payload["role"] = role
    return await client.post("/auth/register", json=payload)


async def signed_up(client, username, role=None):
    response = await register(client, username, role=role)
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


async def test_register_returns_token_user_and_view(client):
    response = await register(client, "grace", role="project_manager", first_name="Grace")

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["redirectTo"] == "/project-manager/dashboard"
    assert body["user"]["role"] == "project_manager"
    assert body["user"]["display_name"] == "Grace"
    assert "password" not in body["user"] and "password_hash" not in body["user"]


async def test_register_duplicate_email_is_conflict(client):
    await register(client, "grace")
    response = await client.post(
        "/auth/register",
        json={"username": "other", "email": "grace@example.com", "password": "x-password"},
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": {"kind": "ConflictError", "reason": "DuplicateEmail", "message": "Email already exists"}
    }

    login = await client.post("/auth/login", json={"email": "grace@example.com", "password": PASSWORD})
    assert login.status_code == 200
    assert login.json()["user"]["username"] == "grace"


async def test_register_invalid_role(client):
    response = await register(client, "grace", role="overlord")
    assert response.status_code == 400
    assert response.json()["error"]["reason"] == "InvalidRole"


async def test_register_missing_fields(client):
    response = await client.post("/auth/register", json={"email": "grace@example.com"})
    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "ValidationError"


async def test_login(client):
    await register(client, "grace", role="admin")

    ok = await client.post("/auth/login", json={"email": "grace@example.com", "password": PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["redirectTo"] == "/admin/dashboard"

    bad = await client.post("/auth/login", json={"email": "grace@example.com", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json()["error"]["reason"] == "InvalidCredentials"


async def test_bearer_token_required(client):
    response = await client.get("/tasks")
    assert response.status_code == 401
    assert response.json()["error"] == {
        "kind": "AuthenticationError",
        "reason": "Unauthenticated",
        "message": "Access token required",
    }


async def test_tampered_token_is_rejected(client):
    _, headers = await signed_up(client, "grace")
    token = headers["Authorization"].split(" ", 1)[1]
    header, payload, signature = token.split(".")
    forged = f"{header}.{payload}.{'A' if signature[0] != 'A' else 'B'}{signature[1:]}"

    response = await client.get("/tasks", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401
    assert response.json()["error"]["reason"] == "InvalidSignature"


async def test_user_role_endpoint(client):
    _, headers = await signed_up(client, "grace", role="team_member")
    response = await client.get("/auth/user-role", headers=headers)
    assert response.json() == {"role": "team_member", "redirectTo": "/team-member/dashboard"}


async def test_profile_self_service(client):
    user, headers = await signed_up(client, "grace")
    other, other_headers = await signed_up(client, "linus")

    response = await client.patch(f"/users/{user['id']}", json={"last_name": "Hopper"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["last_name"] == "Hopper"

    forbidden = await client.patch(f"/users/{user['id']}", json={"last_name": "X"}, headers=other_headers)
    assert forbidden.status_code == 403

    escalate = await client.patch(f"/users/{user['id']}", json={"role": "admin"}, headers=headers)
    assert escalate.status_code == 403


async def test_unknown_route_uses_envelope(client):
    response = await client.get("/nope")
    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "NotFoundError"


async def test_project_tasks_are_ordered(client):
    _, pm = await signed_up(client, "morgan", role=UserRole.PROJECT_MANAGER.value)
    project = (await client.post("/projects", json={"name": "Apollo"}, headers=pm)).json()

    for title, priority in [("a", "low"), ("b", "urgent"), ("c", "medium"), ("d", "urgent")]:
        response = await client.post(
            "/tasks", json={"title": title, "project_id": project["id"], "priority": priority}, headers=pm
        )
        assert response.status_code == 200
        assert response.json()["task"]["due_date"] is None

    listing = await client.get(f"/tasks/project/{project['id']}", headers=pm)
    assert [t["title"] for t in listing.json()] == ["b", "d", "c", "a"]


async def test_task_errors(client):
    _, pm = await signed_up(client, "morgan", role="project_manager")
    _, outsider = await signed_up(client, "olivia")
    project = (await client.post("/projects", json={"name": "Apollo"}, headers=pm)).json()

    not_member = await client.post("/tasks", json={"title": "x", "project_id": project["id"]}, headers=outsider)
    assert not_member.status_code == 403

    no_project = await client.post("/tasks", json={"title": "x", "project_id": 999}, headers=pm)
    assert no_project.status_code == 404

    no_title = await client.post("/tasks", json={"project_id": project["id"]}, headers=pm)
    assert no_title.status_code == 400

    bad_status = await client.put("/tasks/1", json={"status": "done"}, headers=pm)
    assert bad_status.status_code == 400

    missing = await client.put("/tasks/999", json={"title": "x"}, headers=pm)
    assert missing.status_code == 404

    team_member_project = await client.post("/projects", json={"name": "Nope"}, headers=outsider)
    assert team_member_project.status_code == 403


async def test_end_to_end_admin_removes_member_comment(client):
    member, member_headers = await signed_up(client, "alice", role="team_member")
    _, admin_headers = await signed_up(client, "boss", role="admin")

    project = await client.post("/projects", json={"name": "Apollo"}, headers=admin_headers)
    assert project.status_code == 201
    project_id = project.json()["id"]

    added = await client.post(
        f"/projects/{project_id}/members", json={"user_id": member["id"]}, headers=admin_headers
    )
    assert added.status_code == 201
    assert added.json()["role"] == "member"

    created = await client.post(
        "/tasks",
        json={"title": "Ship it", "project_id": project_id, "assigned_to": member["id"]},
        headers=member_headers,
    )
    assert created.status_code == 200
    task = created.json()["task"]
    assert task["status"] == "Pending"
    assert task["assignee_name"] == "alice"

    mine = await client.get("/tasks", headers=member_headers)
    assert [t["id"] for t in mine.json()] == [task["id"]]

    moved = await client.put(f"/tasks/{task['id']}", json={"status": "InProgress"}, headers=member_headers)
    assert moved.status_code == 200
    assert moved.json()["task"]["status"] == "InProgress"

    commented = await client.post(
        "/comments", json={"task_id": task["id"], "content": "On it"}, headers=member_headers
    )
    assert commented.status_code == 200
    comment = commented.json()["comment"]
    assert comment["author_name"] == "alice"

    removed = await client.delete(f"/comments/{comment['id']}", headers=admin_headers)
    assert removed.status_code == 200

    thread = await client.get(f"/comments/task/{task['id']}", headers=member_headers)
    assert thread.status_code == 200
    assert thread.json() == []


async def test_comment_deletion_by_stranger_is_forbidden(client):
    member, member_headers = await signed_up(client, "alice")
    _, other_headers = await signed_up(client, "bob")
    _, admin_headers = await signed_up(client, "boss", role="admin")
    project_id = (await client.post("/projects", json={"name": "Apollo"}, headers=admin_headers)).json()["id"]
    await client.post(f"/projects/{project_id}/members", json={"user_id": member["id"]}, headers=admin_headers)
    task = (await client.post("/tasks", json={"title": "t", "project_id": project_id}, headers=member_headers)).json()["task"]
    comment = (await client.post("/comments", json={"task_id": task["id"], "content": "hi"}, headers=member_headers)).json()["comment"]

    response = await client.delete(f"/comments/{comment['id']}", headers=other_headers)
    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "AuthorizationError"

    missing_task = await client.get("/comments/task/999", headers=member_headers)
    assert missing_task.status_code == 404

    empty = await client.post("/comments", json={"task_id": task["id"], "content": ""}, headers=member_headers)
    assert empty.status_code == 400


async def test_delete_task_cascades(client):
    _, pm = await signed_up(client, "morgan", role="project_manager")
    project_id = (await client.post("/projects", json={"name": "Apollo"}, headers=pm)).json()["id"]
    task = (await client.post("/tasks", json={"title": "t", "project_id": project_id}, headers=pm)).json()["task"]
    await client.post("/comments", json={"task_id": task["id"], "content": "bye"}, headers=pm)

    response = await client.delete(f"/tasks/{task['id']}", headers=pm)
    assert response.status_code == 200

    assert (await client.get(f"/tasks/{task['id']}", headers=pm)).status_code == 404
    assert (await client.get(f"/comments/task/{task['id']}", headers=pm)).status_code == 404


async def test_user_directory_is_for_admins_and_managers(client):
    _, member = await signed_up(client, "alice")
    _, pm = await signed_up(client, "morgan", role="project_manager")

    assert (await client.get("/users", headers=member)).status_code == 403

    listing = await client.get("/users", headers=pm)
    assert listing.status_code == 200
    assert {u["username"] for u in listing.json()} == {"alice", "morgan"}

    me = await client.get("/users/me", headers=member)
    assert me.json()["username"] == "alice"


async def test_admin_cannot_null_role_or_activation(client):
    manager, _ = await signed_up(client, "morgan", role="project_manager")
    _, admin = await signed_up(client, "boss", role="admin")

    for body in ({"is_active": None}, {"role": None}):
        response = await client.patch(f"/users/{manager['id']}", json=body, headers=admin)
        assert response.status_code == 400, body
        assert response.json()["error"]["kind"] == "ValidationError"

    stored = (await client.get(f"/users/{manager['id']}", headers=admin)).json()
    assert stored["role"] == "project_manager"
    assert stored["is_active"] is True


async def test_timestamps_carry_utc_offset(client):
    user, _ = await signed_up(client, "grace")
    for value in (user["created_at"], user["updated_at"]):
        stamp = datetime.fromisoformat(value.replace("Z", "+00:00"))
        assert stamp.utcoffset() == timedelta(0)
