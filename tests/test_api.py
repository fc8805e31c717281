"""
tests.test_api

End-to-end checks through the HTTP surface.

Responsibilities:
- Boot the app through its lifespan and serve health endpoints.
- Check auth, permission enforcement and camelCase payload shapes.
"""

from __future__ import annotations

import uuid

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy import func, select

from citizen_registry.api.app import create_app
from citizen_registry.db.models import Role, RoleName

from conftest import TokenFactory, settings_for_tests

CITIZEN = {
    "firstName": "Ilhan",
    "lastName": "Yusuf",
    "gender": "FEMALE",
    "dateOfBirth": "1992-11-04",
    "placeOfBirth": "Baidoa",
}


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_lifespan_builds_state_and_honours_seed_flag(app: FastAPI) -> None:
    async with app.state.sessionmaker() as s:
        assert await s.scalar(select(func.count()).select_from(Role)) == 3

    unseeded = create_app(settings=settings_for_tests(seed_on_startup=False))
    async with unseeded.router.lifespan_context(unseeded):
        async with unseeded.state.sessionmaker() as s:
            assert await s.scalar(select(func.count()).select_from(Role)) == 0


@pytest.mark.asyncio
async def test_missing_or_bad_token_is_401(client: httpx.AsyncClient) -> None:
    assert (await client.get("/v1/citizens")).status_code == 401
    r = await client.get("/v1/citizens", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user_is_401(
    client: httpx.AsyncClient, tokens: TokenFactory
) -> None:
    r = await client.post("/v1/dev/token", json={"userId": str(uuid.uuid4())})
    assert r.status_code == 200
    headers = {"Authorization": f"Bearer {r.json()['accessToken']}"}
    assert (await client.get("/v1/auth/session", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_session_payload_for_officer(client: httpx.AsyncClient, tokens: TokenFactory) -> None:
    r = await client.get("/v1/auth/session", headers=await tokens.headers("officer1"))
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["username"] == "officer1"
    assert body["user"]["role"]["name"] == "OFFICER"
    assert body["permissions"] == sorted(
        ["VIEW_CITIZEN", "CREATE_CITIZEN", "UPDATE_CITIZEN", "VIEW_DASHBOARD", "VIEW_REPORTS"]
    )
    assert [m["label"] for m in body["menus"]] == ["Dashboard", "Citizens", "Reports"]
    assert [c["label"] for c in body["menus"][1]["children"]] == ["Add Citizen"]
    assert body["sessionTimeout"] == 300


@pytest.mark.asyncio
async def test_citizen_flow_through_trash(client: httpx.AsyncClient, tokens: TokenFactory) -> None:
    admin = await tokens.headers("admin")

    r = await client.post("/v1/citizens", json=CITIZEN, headers=admin)
    assert r.status_code == 201, r.text
    nid = r.json()["nationalId"]
    assert r.json()["fullName"] == "Ilhan Yusuf"

    r = await client.post(f"/v1/citizens/{nid}/status", json={"status": "DECEASED"}, headers=admin)
    assert r.status_code == 200
    assert r.json()["status"] == "DECEASED"

    r = await client.get(f"/v1/citizens/{nid}/status-history", headers=admin)
    assert [(h["oldStatus"], h["newStatus"]) for h in r.json()] == [("ACTIVE", "DECEASED")]

    assert (await client.delete(f"/v1/citizens/{nid}", headers=admin)).status_code == 200
    assert (await client.delete(f"/v1/citizens/{nid}", headers=admin)).status_code == 404
    assert (await client.get(f"/v1/citizens/{nid}", headers=admin)).status_code == 404

    r = await client.get("/v1/citizens/trash", headers=admin)
    assert [c["nationalId"] for c in r.json()["items"]] == [nid]

    r = await client.post(f"/v1/citizens/trash/{nid}/restore", headers=admin)
    assert r.status_code == 200
    assert r.json()["deletedAt"] is None

    r = await client.get("/v1/citizens", params={"pageSize": 10}, headers=admin)
    body = r.json()
    assert (body["total"], body["pageSize"], body["pages"]) == (1, 10, 1)


@pytest.mark.asyncio
async def test_officer_cannot_delete_citizens(client: httpx.AsyncClient, tokens: TokenFactory) -> None:
    officer = await tokens.headers("officer1")
    r = await client.post("/v1/citizens", json=CITIZEN, headers=officer)
    assert r.status_code == 201
    nid = r.json()["nationalId"]

    r = await client.delete(f"/v1/citizens/{nid}", headers=officer)
    assert r.status_code == 403
    assert r.json()["detail"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_disabled_user_is_forbidden(client: httpx.AsyncClient, tokens: TokenFactory) -> None:
    admin = await tokens.headers("admin")
    officer = await tokens.user("officer1")

    r = await client.post(
        f"/v1/users/{officer.id}/status", json={"status": "DISABLED"}, headers=admin
    )
    assert r.status_code == 200

    r = await client.get("/v1/citizens", headers=tokens.headers_for(officer))
    assert r.status_code == 403
    assert r.json()["detail"] == "Account is inactive"


@pytest.mark.asyncio
async def test_domain_errors_map_to_status_codes(
    client: httpx.AsyncClient, tokens: TokenFactory
) -> None:
    admin = await tokens.headers("admin")

    r = await client.post("/v1/citizens", json={**CITIZEN, "gender": "X"}, headers=admin)
    assert r.status_code == 400
    assert "gender" in r.json()["detail"]

    r = await client.get("/v1/citizens", params={"pageSize": 1000}, headers=admin)
    assert r.status_code == 400

    r = await client.delete("/v1/citizens/trash/0000000000", headers=admin)
    assert r.status_code == 404

    admin_user = await tokens.user("admin")
    r = await client.put(f"/v1/users/{admin_user.id}", json={"roleName": "VIEWER"}, headers=admin)
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_role_permission_change_applies_immediately(
    client: httpx.AsyncClient, tokens: TokenFactory
) -> None:
    admin = await tokens.headers("admin")
    viewer = await tokens.add_user("viewer1", RoleName.viewer)
    viewer_headers = tokens.headers_for(viewer)

    assert (await client.get("/v1/citizens", headers=viewer_headers)).status_code == 200
    roles = {r["name"]: r for r in (await client.get("/v1/roles", headers=admin)).json()}

    r = await client.put(
        f"/v1/roles/{roles['VIEWER']['id']}/permissions",
        json={"permissions": ["VIEW_DASHBOARD"]},
        headers=admin,
    )
    assert r.status_code == 200
    assert r.json()["permissions"] == ["VIEW_DASHBOARD"]

    assert (await client.get("/v1/citizens", headers=viewer_headers)).status_code == 403
    session = (await client.get("/v1/auth/session", headers=viewer_headers)).json()
    assert [m["label"] for m in session["menus"]] == ["Dashboard"]


@pytest.mark.asyncio
async def test_user_admin_and_activity_log(client: httpx.AsyncClient, tokens: TokenFactory) -> None:
    admin = await tokens.headers("admin")

    r = await client.post(
        "/v1/users", json={"username": "registrar", "roleName": "OFFICER"}, headers=admin
    )
    assert r.status_code == 201, r.text
    user_id = r.json()["id"]
    assert r.json()["role"]["name"] == "OFFICER"

    r = await client.post("/v1/users", json={"username": "registrar", "roleName": "OFFICER"}, headers=admin)
    assert r.status_code == 409

    assert (await client.delete(f"/v1/users/{user_id}", headers=admin)).status_code == 200
    r = await client.get("/v1/users/trash", headers=admin)
    assert [u["username"] for u in r.json()["items"]] == ["registrar"]
    assert (await client.delete(f"/v1/users/trash/{user_id}", headers=admin)).status_code == 200

    r = await client.get("/v1/activities/recent", headers=admin)
    assert r.status_code == 200
    actions = {a["action"] for a in r.json()}
    assert {"CREATE_USER", "DELETE_USER", "PERMANENT_DELETE_USER"} <= actions

    officer = await tokens.headers("officer1")
    assert (await client.get("/v1/activities/recent", headers=officer)).status_code == 403


# --- Module Notes -----------------------------------------------------------
# Tests drive the ASGI app in-process; no network listener is started.
