from __future__ import annotations

import os
import tempfile
from types import SimpleNamespace
from typing import Generator, Any

import pytest
from sqlalchemy.orm import sessionmaker

from gagyebu.core.database import Base, get_db, init_db, make_engine
from gagyebu.main import app
from gagyebu import models


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # 사용자 환경을 건드리지 않도록 임시 파일 SQLite 사용
    fd, path = tempfile.mkstemp(prefix="gagyebu_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    for suffix in ("", "-wal", "-shm"):
        try:
            os.remove(path + suffix)
        except OSError:
            pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    eng = make_engine(test_db_url)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # 테이블 데이터 정리 (자식 테이블부터)
        with engine.begin() as conn:
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())


@pytest.fixture()
def seed(db_session) -> SimpleNamespace:
    """가구 1개 + 구성원 2명 (소유자, 일반)"""
    owner = models.User(email="owner@example.com", name="김가계")
    member = models.User(email="member@example.com", name="이살림")
    household = models.Household(name="우리집", invite_code="TEST0001")
    db_session.add_all([owner, member, household])
    db_session.flush()
    db_session.add_all([
        models.HouseholdMember(household_id=household.id, user_id=owner.id, role=models.MemberRole.OWNER),
        models.HouseholdMember(household_id=household.id, user_id=member.id, role=models.MemberRole.MEMBER),
    ])
    db_session.commit()
    return SimpleNamespace(household_id=household.id, owner_id=owner.id, member_id=member.id)


@pytest.fixture(autouse=True)
def override_dependency(db_session):
    # FastAPI DI override
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
