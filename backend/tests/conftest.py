import os

# db.py builds its engine at import time; keep it off PostgreSQL for tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Callable, Generator, List  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from trusted_refs.db import Base, get_db, make_engine, make_session_factory  # noqa: E402
from trusted_refs.main import build_app  # noqa: E402
from trusted_refs.models import (  # noqa: E402
    FriendshipStatus,
    Profile,
    ProfileFriendship,
    ProfileRole,
)
from trusted_refs.routers.profiles import get_notification_bridge  # noqa: E402
from trusted_refs.routers.references import get_reference_service  # noqa: E402
from trusted_refs.services.notifications import SqlNotificationBridge  # noqa: E402
from trusted_refs.services.references import ReferenceService  # noqa: E402
from tests.fakes import FakeNotificationBridge  # noqa: E402


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """A fresh SQLite database file per test."""
    eng = make_engine(f"sqlite:///{tmp_path / 'trusted_refs.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return make_session_factory(engine)


@pytest.fixture
def fake_notifier() -> FakeNotificationBridge:
    return FakeNotificationBridge()


@pytest.fixture
def service(session_factory: sessionmaker, fake_notifier: FakeNotificationBridge) -> ReferenceService:
    return ReferenceService(session_factory, fake_notifier)


@pytest.fixture
def make_profile(session_factory: sessionmaker) -> Callable[..., uuid.UUID]:
    counter = iter(range(1, 10_000))

    def _make(role: str = "player", name: str | None = None) -> uuid.UUID:
        n = next(counter)
        with session_factory() as s:
            profile = Profile(
                role=ProfileRole(role),
                display_name=name or f"{role.title()} {n}",
                username=f"{role}{n}",
            )
            s.add(profile)
            s.commit()
            return profile.id

    return _make


@pytest.fixture
def befriend(session_factory: sessionmaker) -> Callable[..., None]:
    def _befriend(a: uuid.UUID, b: uuid.UUID, status: FriendshipStatus = FriendshipStatus.ACCEPTED) -> None:
        with session_factory() as s:
            s.add(ProfileFriendship(user_one=a, user_two=b, requester_id=a, status=status))
            s.commit()

    return _befriend


@pytest.fixture
def player(make_profile) -> uuid.UUID:
    return make_profile("player", "Pat Player")


@pytest.fixture
def club(make_profile, befriend, player) -> uuid.UUID:
    """A club that is an accepted friend of ``player``."""
    club_id = make_profile("club", "City FC")
    befriend(player, club_id)
    return club_id


@pytest.fixture
def accept_references(
    service: ReferenceService, make_profile, befriend
) -> Callable[[uuid.UUID, int], List[uuid.UUID]]:
    """Give ``requester`` ``count`` accepted references from fresh friends."""

    def _accept(requester: uuid.UUID, count: int) -> List[uuid.UUID]:
        ids = []
        for _ in range(count):
            giver = make_profile("coach")
            befriend(requester, giver)
            ref = service.request_reference(requester, giver, "Head Coach")
            service.respond_to_request(ref.id, giver, accept=True)
            ids.append(ref.id)
        return ids

    return _accept


@pytest.fixture
def test_client(session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    """API client wired to the per-test database."""
    app = build_app()

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_reference_service] = lambda: ReferenceService(
        session_factory, SqlNotificationBridge(session_factory)
    )
    app.dependency_overrides[get_notification_bridge] = lambda: SqlNotificationBridge(session_factory)
    with TestClient(app) as client:
        yield client
