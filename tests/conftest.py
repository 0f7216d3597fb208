import os

# до импорта fitassess: приложение не должно создавать файл БД рядом с пакетом
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker

from fitassess.database import init_db, make_engine
from fitassess.models.user import User
from fitassess.utils.assessment_store import AssessmentStore
from fitassess.utils.template_loader import build_registry


@pytest.fixture(scope="session")
def registry():
    return build_registry()


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users(db):
    rows = [
        User(id="trainer-1", email="coach@example.com", password_hash="x", role="trainer"),
        User(id="trainer-2", email="other@example.com", password_hash="x", role="trainer"),
        User(id="client-1", email="anna@example.com", password_hash="x", role="client"),
        User(id="client-2", email="boris@example.com", password_hash="x", role="client"),
    ]
    db.add_all(rows)
    db.commit()
    return {u.id: u for u in rows}


@pytest.fixture
def store(session_factory):
    return AssessmentStore(session_factory)

