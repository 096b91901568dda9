from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_now
from app.db.base import Base
from app.main import app
from app.models.class_group import ClassGroup, Semester
from app.models.course import Course
from app.models.user import User, UserRole

LAGOS = ZoneInfo("Africa/Lagos")
# A Monday, mid-morning.
FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=LAGOS)


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def clock():
    # Tests move time by assigning clock["now"].
    return {"now": FIXED_NOW}


@pytest.fixture()
def client(session_factory, clock):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock["now"]

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def seed(session_factory):
    """One class group with a course rep, two students and two courses."""
    with session_factory() as db:
        group = ClassGroup(name="Nursing 200L", department="Nursing", level=200)
        other_group = ClassGroup(name="Linguistics 100L", department="Linguistics", level=100)
        semester = Semester(name="First Semester", session="2026/2027")
        db.add_all([group, other_group, semester])
        db.flush()

        rep = User(
            name="Ada Rep",
            email="rep@example.com",
            role=UserRole.course_rep,
            class_group_id=group.id,
            current_semester_id=semester.id,
        )
        student = User(
            name="Bola Student",
            email="bola@example.com",
            role=UserRole.student,
            class_group_id=group.id,
            current_semester_id=semester.id,
        )
        classmate = User(
            name="Chi Student",
            email="chi@example.com",
            role=UserRole.student,
            class_group_id=group.id,
            current_semester_id=semester.id,
        )
        outsider = User(
            name="Dayo Outsider",
            email="dayo@example.com",
            role=UserRole.course_rep,
            class_group_id=other_group.id,
            current_semester_id=semester.id,
        )
        loner = User(name="Efe New", email="efe@example.com", role=UserRole.student)
        anatomy = Course(code="NSC201", title="Anatomy")
        physiology = Course(code="NSC203", title="Physiology")
        db.add_all([rep, student, classmate, outsider, loner, anatomy, physiology])
        db.commit()

        return {
            "group_id": group.id,
            "other_group_id": other_group.id,
            "semester_id": semester.id,
            "rep": rep.id,
            "student": student.id,
            "classmate": classmate.id,
            "outsider": outsider.id,
            "loner": loner.id,
            "anatomy": anatomy.id,
            "physiology": physiology.id,
        }
