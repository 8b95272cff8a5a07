import pytest

from melhik.errors import InvalidToken
from melhik.main import app
from melhik.utils.authz import Permission, check_permission, effective_permissions
from melhik.utils.security import hash_password, issue_token, read_token, verify_password


# ---------------- passwords / tokens ----------------
def test_password_hash_verifies():
    hashed = hash_password("correct horse")

    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("x", "not-a-bcrypt-hash")


def test_token_round_trip():
    claims = read_token(issue_token(7, "ayele", "admin"))
    assert claims == {"uid": 7, "username": "ayele", "role": "admin"}


def test_tampered_token_is_rejected():
    token = issue_token(7, "ayele", "admin")
    with pytest.raises(InvalidToken):
        read_token(("f" if token[0] != "f" else "g") + token[1:])


def test_expired_token_is_rejected():
    token = issue_token(7, "ayele", "admin")
    with pytest.raises(InvalidToken, match="expired"):
        read_token(token, max_age=-1)


# ---------------- capability checks ----------------
def test_role_sets():
    assert check_permission("admin", None, Permission.MANAGE_SYNC)
    assert check_permission("content_manager", None, Permission.EDIT_CONTENT)
    assert not check_permission("content_manager", None, Permission.MANAGE_SYNC)
    assert not check_permission("nobody", None, Permission.VIEW_RELIGIONS)


def test_override_list_replaces_role_set():
    # even an admin with an explicit list only gets what is listed
    assert check_permission("admin", ["view_content"], Permission.VIEW_CONTENT)
    assert not check_permission("admin", ["view_content"], Permission.MANAGE_SYNC)
    assert effective_permissions("admin", []) == frozenset()


def test_every_capability_guards_a_route():
    guarded = set()
    for route in app.routes:
        dependant = getattr(route, "dependant", None)
        if dependant is None:
            continue
        for dep in dependant.dependencies:
            for cell in getattr(dep.call, "__closure__", None) or ():
                if isinstance(cell.cell_contents, Permission):
                    guarded.add(cell.cell_contents)

    assert guarded == set(Permission)


def test_content_manager_has_authoring_but_no_sync():
    perms = effective_permissions("content_manager", None)

    assert perms == {p.value for p in Permission} - {"manage_sync"}


# ---------------- endpoints ----------------
def test_login_issues_usable_token(client, admin):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "secret123"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"] == {"id": admin.id, "username": "admin", "role": "admin"}

    me = client.get("/api/users/me/permissions", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert "manage_sync" in me.json()["data"]["permissions"]


def test_login_bad_password(client, admin):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


def test_login_requires_fields(client):
    resp = client.post("/api/auth/login", json={"username": ""})
    assert resp.status_code == 400


def test_inactive_user_token_is_refused(client, db, manager, manager_headers):
    manager.status = "inactive"
    db.commit()

    resp = client.get("/api/religions", headers=manager_headers)

    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid token"


def test_garbage_bearer_token(client):
    resp = client.get("/api/religions", headers={"Authorization": "Bearer not.a.token"})
    assert resp.status_code == 401


def test_me_permissions_reports_overrides(client, make_user, auth_headers):
    user = make_user("limited", permissions=["view_topics"])

    data = client.get("/api/users/me/permissions", headers=auth_headers(user)).json()["data"]

    assert data == {"role": "content_manager", "custom": True, "permissions": ["view_topics"]}
