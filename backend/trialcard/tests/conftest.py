import os
os.environ["TESTING"] = "1"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path
from datetime import date

sys.path.append(str(Path(__file__).resolve().parents[2]))

from trialcard import models, notify
from trialcard.cli.seed import create_user, seed_departments
from trialcard.database import Base, get_db
from trialcard.main import app

SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        seed_departments(session)
    finally:
        session.close()
    notify.EMAIL_OUTBOX.clear()
    notify.FAILING_RECIPIENTS.clear()
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(username, role="User", department_id=1, password="secret", email=None, **extra):
    session = TestingSessionLocal()
    try:
        return create_user(
            session,
            username,
            password,
            role=role,
            department_id=department_id,
            email=email,
            needs_password_change=False,
            **extra,
        )
    finally:
        session.close()


def make_trial(trial_id="FY26-A001", status="OPEN", deleted=False, **fields):
    session = TestingSessionLocal()
    try:
        trial = models.Trial(
            trial_id=trial_id,
            part_name=fields.pop("part_name", "Brake drum"),
            pattern_code=fields.pop("pattern_code", "PC-100"),
            date_of_sampling=fields.pop("date_of_sampling", date(2026, 10, 1)),
            status=status,
            **fields,
        )
        if deleted:
            trial.deleted_at = models._utcnow()
        session.add(trial)
        session.commit()
        return trial_id
    finally:
        session.close()


def login(client, username, password="secret"):
    resp = client.post("/api/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def auth_headers(client, username, password="secret"):
    # the token travels as the raw header value
    return {"Authorization": login(client, username, password)["token"]}


def audit_entries(action=None, trial_id=None):
    session = TestingSessionLocal()
    try:
        query = session.query(models.AuditLog)
        if action:
            query = query.filter(models.AuditLog.action == action)
        if trial_id:
            query = query.filter(models.AuditLog.trial_id == trial_id)
        return query.order_by(models.AuditLog.audit_id).all()
    finally:
        session.close()
