"""
End-to-end tests through the HTTP API.

The app runs in-process over ASGI with the session and the WhatsApp client
dependencies pointed at the per-test database and the fake gateway.
"""

import httpx
import pytest
from sqlalchemy.exc import SQLAlchemyError

from jobdesk.core.database import get_session
from jobdesk.core.dependencies import get_whatsapp_client
from jobdesk.core.security import create_access_token
from jobdesk.main import app
from jobdesk.models import Profile, ProfileRole
from jobdesk.services.notification_log import NotificationLogStore
from jobdesk.services.system_settings import SettingsUpdate, SystemSettingsService

API = "/api/v1"


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
async def client(session_factory, whatsapp_client):
    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_whatsapp_client():
        yield whatsapp_client

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_whatsapp_client] = override_whatsapp_client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://jobdesk") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def add_profile(session_factory):
    """Commit a profile and return it with an auth header."""

    async def _add(role: ProfileRole, phone: str | None = None, full_name: str | None = None):
        async with session_factory() as session:
            profile = Profile(
                email=f"{role.value}-{phone or 'nophone'}@sahi-kitchen.com",
                full_name=full_name or role.value.title(),
                phone=phone,
                role=role,
            )
            session.add(profile)
            await session.commit()
        token = create_access_token(profile.id, role.value)
        return profile, {"Authorization": f"Bearer {token}"}

    return _add


@pytest.fixture
async def configured(session_factory):
    async with session_factory() as session:
        await SystemSettingsService(session).update_settings(
            SettingsUpdate(whatsapp_instance_id="instance42", whatsapp_token="secret-token")
        )
        await session.commit()


# =============================================================================
# TEST: AUTH
# =============================================================================


class TestAuth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_requires_token(self, client):
        response = await client.get(f"{API}/tasks")
        assert response.status_code == 401

    async def test_dev_login_provisions_staff(self, client):
        response = await client.post(
            f"{API}/auth/dev-login",
            json={"email": "New.Hire@sahi-kitchen.com", "full_name": "New Hire"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["profile"]["email"] == "new.hire@sahi-kitchen.com"
        assert body["profile"]["role"] == "staff"

        me = await client.get(
            f"{API}/auth/me",
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )
        assert me.status_code == 200
        assert me.json()["id"] == body["profile"]["id"]


# =============================================================================
# TEST: PERSONNEL
# =============================================================================


class TestPersonnel:

    async def test_create_sends_onboarding(self, client, add_profile, configured, gateway):
        _, admin = await add_profile(ProfileRole.ADMIN)

        response = await client.post(
            f"{API}/personnel",
            json={"email": "line.cook@sahi-kitchen.com", "full_name": "Line Cook", "phone": "9000000007"},
            headers=admin,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["profile"]["is_password_forced_change"] is True
        assert "avatar_url" not in body["profile"]
        assert body["notification"]["sent"] == 1
        assert gateway.recipients == ["919000000007"]
        assert body["temporary_password"] in gateway.messages[0]["body"]

    async def test_staff_cannot_create(self, client, add_profile):
        _, staff = await add_profile(ProfileRole.STAFF)

        response = await client.post(
            f"{API}/personnel",
            json={"email": "x@sahi-kitchen.com"},
            headers=staff,
        )

        assert response.status_code == 403


# =============================================================================
# TEST: TASKS
# =============================================================================


class TestTaskFlow:

    async def test_create_gate_and_revision(self, client, add_profile, configured, gateway):
        _, admin = await add_profile(ProfileRole.ADMIN)
        cook, cook_headers = await add_profile(ProfileRole.STAFF, phone="9000000001", full_name="Cook")

        created = await client.post(
            f"{API}/tasks",
            json={"title": "Clean hood filters", "assignee_ids": [str(cook.id)], "priority": "High"},
            headers=admin,
        )
        assert created.status_code == 201
        body = created.json()
        task_id = body["task"]["id"]
        assert body["task"]["status"] == "Pending"
        assert body["task"]["display_id"].startswith("SAHI-")
        assert body["notification"] == {"ok": True, "sent": 1, "failed": 0, "skipped": None}
        assert gateway.messages[0]["body"] == (
            "Hi Cook, new task: Clean hood filters. Priority: High."
        )

        moved = await client.patch(
            f"{API}/tasks/{task_id}/status", json={"status": "Completed"}, headers=cook_headers
        )
        assert moved.status_code == 200
        assert moved.json()["requested_status"] == "Completed"
        assert moved.json()["status"] == "Review Pending"

        forbidden = await client.post(
            f"{API}/tasks/{task_id}/revision", json={"feedback": "no"}, headers=cook_headers
        )
        assert forbidden.status_code == 403

        revised = await client.post(
            f"{API}/tasks/{task_id}/revision",
            json={"feedback": "Filters still greasy"},
            headers=admin,
        )
        assert revised.status_code == 200
        assert revised.json()["task"]["status"] == "In Progress"
        assert "Admin]: Filters still greasy" in revised.json()["task"]["revision_notes"]
        assert gateway.messages[-1]["body"] == (
            'Your task "Clean hood filters" requires revision. Admin Note: Filters still greasy'
        )

        listed = await client.get(f"{API}/tasks", headers=cook_headers)
        assert [t["id"] for t in listed.json()] == [task_id]

    async def test_empty_revision_feedback(self, client, add_profile):
        _, admin = await add_profile(ProfileRole.ADMIN)
        created = await client.post(f"{API}/tasks", json={"title": "T"}, headers=admin)

        response = await client.post(
            f"{API}/tasks/{created.json()['task']['id']}/revision",
            json={"feedback": "   "},
            headers=admin,
        )

        assert response.status_code == 400

    async def test_task_saved_when_gateway_not_configured(self, client, add_profile, gateway):
        _, admin = await add_profile(ProfileRole.ADMIN)
        cook, _ = await add_profile(ProfileRole.STAFF, phone="9000000001")

        response = await client.post(
            f"{API}/tasks",
            json={"title": "Sharpen knives", "assignee_ids": [str(cook.id)]},
            headers=admin,
        )

        assert response.status_code == 201
        assert response.json()["notification"]["skipped"] == "whatsapp_not_configured"
        assert gateway.requests == []

        fetched = await client.get(f"{API}/tasks/{response.json()['task']['id']}", headers=admin)
        assert fetched.json()["assignee_ids"] == [str(cook.id)]

    async def test_task_kept_when_dedup_write_fails(
        self, client, add_profile, configured, gateway, monkeypatch
    ):
        _, admin = await add_profile(ProfileRole.ADMIN)
        cook, _ = await add_profile(ProfileRole.STAFF, phone="9000000001")

        async def failing_claim(self, *args, **kwargs):
            raise SQLAlchemyError("notification_log unavailable")

        monkeypatch.setattr(NotificationLogStore, "claim", failing_claim)
        response = await client.post(
            f"{API}/tasks",
            json={"title": "Descale kettles", "assignee_ids": [str(cook.id)]},
            headers=admin,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["notification"] is None
        assert body["notification_error"] == "Notification could not be recorded"
        assert body["task"]["title"] == "Descale kettles"
        assert gateway.requests == []

        fetched = await client.get(f"{API}/tasks/{body['task']['id']}", headers=admin)
        assert fetched.status_code == 200
        assert fetched.json()["assignee_ids"] == [str(cook.id)]

    async def test_unknown_task(self, client, add_profile):
        _, admin = await add_profile(ProfileRole.ADMIN)

        response = await client.get(
            f"{API}/tasks/00000000-0000-0000-0000-000000000000", headers=admin
        )

        assert response.status_code == 404


# =============================================================================
# TEST: SETTINGS
# =============================================================================


class TestSettings:

    async def test_token_is_masked(self, client, add_profile, configured):
        _, admin = await add_profile(ProfileRole.ADMIN)

        response = await client.get(f"{API}/admin/settings", headers=admin)

        assert response.status_code == 200
        body = response.json()
        assert body["whatsapp_instance_id"] == "instance42"
        assert body["whatsapp_token"] != "secret-token"
        assert body["whatsapp_configured"] is True

    async def test_connection_check_uses_stored_token(self, client, add_profile, configured, gateway):
        _, admin = await add_profile(ProfileRole.ADMIN)

        response = await client.post(
            f"{API}/admin/settings/test-connection", json={}, headers=admin
        )

        assert response.json() == {"ok": True, "error": None}
        assert gateway.requests[0].url.params["token"] == "secret-token"


# =============================================================================
# TEST: WIKI
# =============================================================================


class TestWiki:

    async def test_write_up_task_and_delete(self, client, add_profile):
        _, admin = await add_profile(ProfileRole.ADMIN)
        _, staff = await add_profile(ProfileRole.STAFF)
        created = await client.post(
            f"{API}/tasks",
            json={"title": "Replace router", "description": "Kitchen wifi keeps dropping"},
            headers=admin,
        )
        task_id = created.json()["task"]["id"]

        draft = await client.get(f"{API}/wiki/drafts/from-task/{task_id}", headers=staff)
        assert draft.status_code == 200
        assert draft.json()["title"] == "Replace router"
        assert draft.json()["category"] == "Software"

        saved = await client.post(
            f"{API}/wiki",
            json={**draft.json(), "category": "Network"},
            headers=staff,
        )
        assert saved.status_code == 201
        article_id = saved.json()["id"]
        task = await client.get(f"{API}/tasks/{task_id}", headers=admin)
        assert task.json()["wiki_article_id"] == article_id

        listed = await client.get(f"{API}/wiki", params={"category": "Network"}, headers=staff)
        assert [a["id"] for a in listed.json()] == [article_id]

        assert (await client.delete(f"{API}/wiki/{article_id}", headers=staff)).status_code == 403
        assert (await client.delete(f"{API}/wiki/{article_id}", headers=admin)).status_code == 204
        assert (await client.get(f"{API}/wiki/{article_id}", headers=staff)).status_code == 404

    async def test_title_is_required(self, client, add_profile):
        _, staff = await add_profile(ProfileRole.STAFF)

        response = await client.post(f"{API}/wiki", json={"title": "   "}, headers=staff)

        assert response.status_code == 400
        assert response.json()["detail"] == "Title is required."
