"""Pytest configuration and shared fixtures."""

from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from docguard.core.config import Settings
from docguard.core.protocol import DocumentService
from docguard.core.rate_limit import InMemoryRateLimiter, rules_from_settings
from docguard.core.rbac import Role
from docguard.db.base import Base
from docguard.db.session import init_db
from tests.factories import (
    actor_for,
    create_department,
    create_document,
    create_organization,
    create_user,
)


class FakeClock:
    """Manually advanced clock for rate limit windows and deadlines."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        rate_limit_backend="memory",
        rate_limit_search=20,
        rate_limit_list=60,
        rate_limit_window=60,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def rate_limiter(settings, clock):
    return InMemoryRateLimiter(rules=rules_from_settings(settings), clock=clock)


@pytest.fixture
def service(db_session, rate_limiter, settings, clock):
    return DocumentService(db_session, rate_limiter, settings, clock=clock)


@pytest.fixture
def client(db_session, rate_limiter):
    """API client bound to the test database and an in-memory rate limiter."""
    from fastapi.testclient import TestClient

    from docguard.api.deps import get_db, get_rate_limiter
    from docguard.api.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def world(db_session):
    """Two organizations with a populated engineering department.

    org        -> eng (author, member, viewer, manager), ops (outsider)
    other_org  -> other_dept (foreign manager)
    """
    org = create_organization(db_session, name="Acme")
    other_org = create_organization(db_session, name="Globex")
    eng = create_department(db_session, org=org, name="Engineering")
    ops = create_department(db_session, org=org, name="Operations")
    other_dept = create_department(db_session, org=other_org, name="Globex Engineering")

    author = create_user(db_session, org=org, roles={eng: Role.MEMBER})
    member = create_user(db_session, org=org, roles={eng: Role.MEMBER})
    viewer = create_user(db_session, org=org, roles={eng: Role.VIEWER})
    manager = create_user(db_session, org=org, roles={eng: Role.MANAGER})
    outsider = create_user(db_session, org=org, roles={ops: Role.MANAGER})
    foreign = create_user(db_session, org=other_org, roles={other_dept: Role.MANAGER})

    document = create_document(
        db_session, author=author, department=eng, title="Reduce line downtime"
    )
    db_session.commit()

    return SimpleNamespace(
        org=org,
        other_org=other_org,
        eng=eng,
        ops=ops,
        other_dept=other_dept,
        document=document,
        doc_id=str(document.id),
        author=actor_for(author),
        member=actor_for(member),
        viewer=actor_for(viewer),
        manager=actor_for(manager),
        outsider=actor_for(outsider),
        foreign=actor_for(foreign),
        users=SimpleNamespace(
            author=author,
            member=member,
            viewer=viewer,
            manager=manager,
            outsider=outsider,
            foreign=foreign,
        ),
    )
