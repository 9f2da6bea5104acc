"""Tests for the web routes."""

import logging

import pytest
from fastapi.testclient import TestClient

from bitwork.models import Application, Job, Profile
from bitwork.services import applications, notifications, revalidate
from bitwork.web.app import _log_stale_page

from conftest import JOB_DATA, login

JSON = {"Accept": "application/json"}


@pytest.fixture
def seeded(db, provider, seeker, job):
    return provider, seeker, job


def fresh(database, model, key):
    with database.session() as check:
        return check.get(model, key)


class TestAuth:
    def test_callback_without_identity(self, client):
        response = login(client, "")
        assert response.status_code == 401

    def test_first_sign_in_goes_to_profile(self, client, database):
        response = login(client, "brand-new", name="Brand New")
        assert response.status_code == 303
        assert response.headers["location"] == "/profile"
        assert fresh(database, Profile, "brand-new").full_name == "Brand New"

    def test_returning_user_goes_to_dashboard(self, client, seeded):
        response = login(client, "seeker-1")
        assert response.headers["location"] == "/dashboard"

    def test_logout(self, client, seeded):
        login(client, "seeker-1")
        client.get("/logout")
        response = client.get("/dashboard", follow_redirects=False)
        assert response.headers["location"] == "/"


class TestPages:
    def test_landing(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Bitwork" in response.text

    def test_dashboard_requires_login(self, client):
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303

    def test_provider_dashboard(self, client, seeded):
        login(client, "provider-1")
        response = client.get("/dashboard")
        assert response.status_code == 200
        assert "Active jobs" in response.text
        assert JOB_DATA["title"] in response.text

    def test_seeker_dashboard(self, client, seeded):
        login(client, "seeker-1")
        response = client.get("/dashboard")
        assert response.status_code == 200
        assert JOB_DATA["title"] in response.text

    def test_job_list_and_detail(self, client, seeded):
        _, _, job = seeded
        login(client, "seeker-1")
        assert JOB_DATA["title"] in client.get("/jobs").text
        response = client.get(f"/jobs/{job.id}")
        assert response.status_code == 200
        assert "Submit application" in response.text

    def test_oversized_budget_filter(self, client, seeded):
        login(client, "seeker-1")
        response = client.get("/jobs", params={"min_budget": "99999999999999999999"})
        assert response.status_code == 200
        assert JOB_DATA["title"] in response.text

    def test_missing_job_404(self, client, seeded):
        login(client, "seeker-1")
        assert client.get("/jobs/missing").status_code == 404

    def test_profile_page(self, client, seeded):
        login(client, "seeker-1")
        response = client.get("/profile")
        assert response.status_code == 200
        assert "Preferences" in response.text


class TestJobRoutes:
    def test_post_job(self, client, database, seeded):
        login(client, "provider-1")
        response = client.post("/jobs/new", data={**JOB_DATA, "title": "Hang three shelves"}, headers=JSON)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert fresh(database, Job, body["id"]).title == "Hang three shelves"

    def test_post_invalid_job_rerenders(self, client, seeded):
        login(client, "provider-1")
        response = client.post("/jobs/new", data={**JOB_DATA, "title": "No"})
        assert response.status_code == 400
        assert "Title must be at least" in response.text

    def test_edit_by_non_owner_forbidden(self, client, seeded):
        _, _, job = seeded
        login(client, "seeker-1")
        response = client.post(f"/jobs/{job.id}/edit", data={"budget": "1"}, headers=JSON)
        assert response.status_code == 403
        assert response.json()["code"] == "unauthorized"

    def test_status_change(self, client, database, seeded):
        _, _, job = seeded
        login(client, "provider-1")
        response = client.post(f"/jobs/{job.id}/status", data={"status": "completed"}, headers=JSON)
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

        response = client.post(f"/jobs/{job.id}/status", data={"status": "closed"}, headers=JSON)
        assert response.json()["success"] is True
        assert fresh(database, Job, job.id).status == "closed"

    def test_toggle_save(self, client, seeded):
        _, _, job = seeded
        login(client, "seeker-1")
        assert client.post(f"/jobs/{job.id}/save", headers=JSON).json()["saved"] is True
        assert "Fix leaking" in client.get("/jobs/saved").text
        assert client.post(f"/jobs/{job.id}/save", headers=JSON).json()["saved"] is False

    def test_delete_redirects_to_dashboard(self, client, database, seeded):
        _, _, job = seeded
        login(client, "provider-1")
        response = client.post(f"/jobs/{job.id}/delete", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"
        assert fresh(database, Job, job.id) is None


class TestApplicationRoutes:
    def test_apply_and_decide(self, client, database, seeded):
        _, _, job = seeded
        login(client, "seeker-1")
        response = client.post(
            f"/jobs/{job.id}/apply",
            data={"cover_letter": "Happy to help", "proposed_rate": "100", "availability": "now"},
            headers=JSON,
        )
        assert response.json()["success"] is True
        application_id = response.json()["id"]

        duplicate = client.post(f"/jobs/{job.id}/apply", data={}, headers=JSON)
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "duplicate_application"

        login(client, "provider-1")
        assert "Happy to help" in client.get(f"/applications/{application_id}").text
        response = client.post(
            f"/applications/{application_id}/status", data={"status": "accepted"}, headers=JSON
        )
        assert response.json()["success"] is True
        assert fresh(database, Application, application_id).status == "accepted"

        login(client, "seeker-1")
        response = client.post(f"/applications/{application_id}/withdraw", headers=JSON)
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_self_application(self, client, seeded):
        _, _, job = seeded
        login(client, "provider-1")
        response = client.post(f"/jobs/{job.id}/apply", data={}, headers=JSON)
        assert response.status_code == 400
        assert response.json()["code"] == "self_application"

    def test_browser_flow_flashes(self, client, seeded):
        _, _, job = seeded
        login(client, "seeker-1")
        response = client.post(f"/jobs/{job.id}/apply", data={})
        assert response.status_code == 200
        assert "Application submitted!" in response.text

    def test_application_hidden_from_strangers(self, client, db, seeded, other_seeker):
        _, seeker, job = seeded
        application = applications.create_application(db, job.id, seeker.id).data
        login(client, other_seeker.id)
        assert client.get(f"/applications/{application.id}").status_code == 404

    def test_list(self, client, db, seeded):
        _, seeker, job = seeded
        applications.create_application(db, job.id, seeker.id)
        login(client, "provider-1")
        response = client.get("/applications")
        assert "Accept" in response.text
        assert "Sam Seeker" in response.text


class TestNotificationRoutes:
    def test_unread_count_and_read_all(self, client, db, seeded):
        _, seeker, _ = seeded
        for _ in range(2):
            notifications.notify(db, seeker.id, "system", "Hi", "Body")
        db.commit()

        login(client, "seeker-1")
        assert client.get("/notifications/unread-count").json() == {"count": 2}
        assert "Hi" in client.get("/notifications").text

        response = client.post("/notifications/read-all", headers=JSON)
        assert response.json() == {"success": True, "count": 2}
        assert client.get("/notifications/unread-count").json() == {"count": 0}

    def test_cannot_touch_others(self, client, db, seeded):
        provider, seeker, _ = seeded
        note = notifications.notify(db, seeker.id, "system", "Private", "Body")
        db.commit()

        login(client, provider.id)
        response = client.post(f"/notifications/{note.id}/delete", headers=JSON)
        assert response.status_code == 403

    def test_unread_count_requires_login(self, client):
        assert client.get("/notifications/unread-count").status_code == 401


class TestProfileRoutes:
    def test_choose_role_then_dashboard(self, client, database):
        login(client, "newcomer")
        response = client.post(
            "/profile", data={"role": "seeker", "full_name": "New Comer"}, follow_redirects=False
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"
        assert fresh(database, Profile, "newcomer").role == "seeker"

    def test_invalid_role(self, client, seeded):
        login(client, "seeker-1")
        response = client.post("/profile", data={"role": "admin"})
        assert response.status_code == 400
        assert "Role must be provider or seeker" in response.text

    def test_preferences(self, client, seeded):
        login(client, "seeker-1")
        response = client.post("/profile/preferences", data={"theme": "dark"}, headers=JSON)
        assert response.json()["success"] is True


class TestMessageRoutes:
    def test_send_and_view(self, client, seeded):
        provider, _, job = seeded
        login(client, "seeker-1")
        response = client.post(
            f"/messages/{provider.id}", data={"content": "Hello there", "job_id": job.id}, headers=JSON
        )
        assert response.json()["success"] is True

        login(client, "provider-1")
        assert client.get("/notifications/unread-count").json() == {"count": 1}
        page = client.get("/messages/seeker-1")
        assert "Hello there" in page.text

    def test_unknown_user(self, client, seeded):
        login(client, "seeker-1")
        assert client.get("/messages/ghost").status_code == 404


class TestStalePages:
    def test_writes_log_stale_paths(self, client, seeded, caplog):
        caplog.set_level(logging.DEBUG, logger="bitwork.web")
        login(client, "provider-1")
        client.post("/jobs/new", data={**JOB_DATA, "title": "Clean the gutters"}, headers=JSON)
        messages = [r.getMessage() for r in caplog.records if r.name == "bitwork.web"]
        assert "Stale page: /home/jobs" in messages

    def test_listener_removed_on_shutdown(self, app):
        with TestClient(app):
            assert _log_stale_page in revalidate._listeners
        assert _log_stale_page not in revalidate._listeners
