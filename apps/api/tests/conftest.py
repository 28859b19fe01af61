"""
Shared fixtures: in-memory SQLite, dependency overrides and a recording mailer.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db import get_session
from app.core.security import create_access_token, hash_password
from app.models.project import Project
from app.models.ticket import Ticket
from app.models.user import Base, User
from app.services.mail_events import Notifier, get_notifier

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


class FakeMailer:
    def __init__(self, configured: bool = True, fail: bool = False):
        self.configured = configured
        self.fail = fail
        self.sent = []

    def send(self, payload) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append(payload)

    def of_type(self, event_type: str) -> list:
        return [p for p in self.sent if p.event_type == event_type]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def session(session_factory):
    with session_factory() as s:
        yield s


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def client(session_factory, mailer):
    def override_get_session():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    notifier = Notifier(mailer, base_url="http://tracker.test")
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(session, name: str, email: str, role: str = "employee") -> User:
    user = User(name=name, email=email, password_hash=PASSWORD_HASH, role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_project(session, owner: User, name: str = "Core Platform", description: str = "Main product backlog") -> Project:
    project = Project(name=name, description=description, owner_id=owner.id)
    session.add(project)
    session.commit()
    session.refresh(project)
    return project


def make_ticket(session, project: Project, submitter: User, **fields) -> Ticket:
    values = {
        "title": "Login button broken",
        "description": "Clicking login does nothing on Safari",
    }
    values.update(fields)
    t = Ticket(project_id=project.id, submitter_id=submitter.id, **values)
    session.add(t)
    session.commit()
    session.refresh(t)
    return t


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


@pytest.fixture
def admin(session) -> User:
    return make_user(session, "Alice Admin", "alice@example.com", role="admin")


@pytest.fixture
def employee(session) -> User:
    return make_user(session, "Bob Builder", "bob@example.com")


@pytest.fixture
def other_employee(session) -> User:
    return make_user(session, "Carol Coder", "carol@example.com")


@pytest.fixture
def project(session, admin) -> Project:
    return make_project(session, admin)
