"""Shared fixtures: a throwaway SQLite database and seeded profiles."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from bitwork.config import AppConfig, DatabaseConfig
from bitwork.models import Job
from bitwork.services import jobs, profiles
from bitwork.storage.database import Database
from bitwork.web.app import create_app

JOB_DATA = {
    "title": "Fix leaking kitchen sink",
    "description": "Kitchen sink drips constantly, needs a new washer or cartridge.",
    "category": "Plumbing",
    "budget": "150",
    "city": "Austin",
    "state": "TX",
    "skills": "plumbing, repairs",
}


@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.db'}")
    database.open()
    database.create_all()
    yield database
    database.close()


@pytest.fixture
def db(database):
    with database.session() as session:
        yield session


def make_profile(db, user_id, role, full_name=None):
    profiles.ensure_profile(db, user_id, full_name=full_name or user_id.title())
    result = profiles.update_profile(db, user_id, {"role": role})
    assert result.success
    return result.data


def make_job(db, provider_id, created_at=None, **overrides):
    result = jobs.create_job(db, {**JOB_DATA, **overrides}, provider_id=provider_id)
    assert result.success, result.error
    job = result.data
    if created_at is not None:
        job.created_at = created_at
        db.commit()
    return job


def minutes_ago(n):
    return datetime.now(timezone.utc) - timedelta(minutes=n)


@pytest.fixture
def provider(db):
    return make_profile(db, "provider-1", "provider", "Pat Provider")


@pytest.fixture
def seeker(db):
    return make_profile(db, "seeker-1", "seeker", "Sam Seeker")


@pytest.fixture
def other_seeker(db):
    return make_profile(db, "seeker-2", "seeker", "Sky Seeker")


@pytest.fixture
def job(db, provider) -> Job:
    return make_job(db, provider.id)


@pytest.fixture
def app(tmp_path, database):
    config = AppConfig(database=DatabaseConfig(url=database.url), log_dir=str(tmp_path / "logs"))
    return create_app(config, database=database)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def login(client, user_id, name=None):
    headers = {"X-Forwarded-User": user_id}
    if name:
        headers["X-Forwarded-Preferred-Username"] = name
    return client.get("/auth/callback", headers=headers, follow_redirects=False)
