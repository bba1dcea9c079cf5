import os

# Point the app at SQLite before app.core.config is first imported.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_proposal_store, get_session_factory  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.academic import SchoolClass, Subject, Teacher, TeacherAssignment, Term  # noqa: E402

TERM_ID = "term-1"
CLASS_ID = "class-1"


@pytest.fixture()
def session_factory():
    # One shared in-memory connection so every session sees the same tables.
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def seed(session_factory):
    """Insert rows through a throwaway session and return them."""

    def _seed(*rows):
        db = session_factory()
        try:
            db.add_all(rows)
            db.commit()
        finally:
            db.close()
        return rows

    return _seed


@pytest.fixture()
def academic_setup(seed):
    """Term, class, two subjects and their teachers for the default class/term pair."""
    seed(
        Term(id=TERM_ID, name="Semester 1", academic_year="2026/2027"),
        SchoolClass(id=CLASS_ID, name="7A", grade="7"),
        Subject(id="math", code="MATH", name="Mathematics"),
        Subject(id="science", code="SCI", name="Science"),
        Teacher(id="teacher-1", name="Teacher One"),
        Teacher(id="teacher-2", name="Teacher Two"),
        TeacherAssignment(class_id=CLASS_ID, term_id=TERM_ID, subject_id="math", teacher_id="teacher-1"),
        TeacherAssignment(class_id=CLASS_ID, term_id=TERM_ID, subject_id="science", teacher_id="teacher-2"),
    )
    return {"term_id": TERM_ID, "class_id": CLASS_ID}


@pytest.fixture()
def client(session_factory):
    get_proposal_store.cache_clear()
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    get_proposal_store.cache_clear()
