import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from evops.core.clock import utcnow
from evops.core.security import create_access_token, hash_password
from evops.db.base import Base
from evops.db.models.event import Event
from evops.db.models.user import User
from evops.db.session import get_db
from evops.domain.enums import EventStatus, Role
from evops.domain.roles import Caller
from evops.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

PASSWORD = "Correct-Horse-42"


@pytest.fixture(autouse=True)
def db():
    Base.metadata.create_all(bind=engine)
    session = TestSession()
    app.dependency_overrides[get_db] = lambda: session
    yield session
    session.close()
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client():
    return TestClient(app)


def make_user(db, email: str, role: str = Role.organizer, **kwargs) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email,
        full_name=email.split("@")[0].title(),
        hashed_password=hash_password(PASSWORD),
        role=role,
        **kwargs,
    )
    db.add(user)
    db.commit()
    return user


def headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


def make_event(db, organizer: User, *, status: str = EventStatus.draft, **kwargs) -> Event:
    event = Event(
        id=uuid.uuid4(),
        organizer_id=organizer.id,
        title=kwargs.pop("title", "Spring Gala"),
        status=status,
        start_date=kwargs.pop("start_date", utcnow() + timedelta(days=30)),
        **kwargs,
    )
    db.add(event)
    db.commit()
    return event


@pytest.fixture()
def organizer(db):
    return make_user(db, "organizer@test.local")


@pytest.fixture()
def other_organizer(db):
    return make_user(db, "other@test.local")


@pytest.fixture()
def admin(db):
    return make_user(db, "admin@test.local", role=Role.admin)


@pytest.fixture()
def superadmin(db):
    return make_user(db, "root@test.local", role=Role.superadmin)


@pytest.fixture()
def organizer_header(organizer):
    return headers_for(organizer)


@pytest.fixture()
def admin_header(admin):
    return headers_for(admin)


@pytest.fixture()
def organizer_caller(organizer):
    return Caller.from_user(organizer)


@pytest.fixture()
def admin_caller(admin):
    return Caller.from_user(admin)


@pytest.fixture()
def event(db, organizer):
    return make_event(db, organizer)


@pytest.fixture()
def active_event(db, organizer):
    return make_event(db, organizer, status=EventStatus.active, title="Live Show")


@pytest.fixture()
def password():
    return PASSWORD


@pytest.fixture()
def user_factory(db):
    return lambda email, role=Role.organizer, **kwargs: make_user(db, email, role, **kwargs)


@pytest.fixture()
def event_factory(db):
    return lambda organizer, **kwargs: make_event(db, organizer, **kwargs)


@pytest.fixture()
def auth_headers():
    return headers_for
