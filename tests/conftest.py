import os

# 匯入 app 之前先指定測試用設定
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["TIMEZONE"] = "Asia/Hong_Kong"

from datetime import date
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import Base, get_db
from main import app
from models.leave_requests import LeaveRequest
from models.lessons import Lesson
from models.students import Student

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-token"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # 500 回應也要能檢查內容，不讓例外直接拋到測試
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def fetch(session_factory):
    """以新的 session 讀取資料列，避免讀到 identity map 中的舊值"""
    def _fetch(model, pk):
        session = session_factory()
        try:
            return session.get(model, pk)
        finally:
            session.close()
    return _fetch


@pytest.fixture
def make_student(db):
    def _make(student_id: str = "stu-1", org_id: Optional[str] = "org-1", **kwargs) -> Student:
        student = Student(
            id=student_id,
            org_id=org_id,
            full_name=kwargs.pop("full_name", "陳小明"),
            nick_name=kwargs.pop("nick_name", "小明"),
            student_oid=kwargs.pop("student_oid", "S0001"),
            pending_confirmation_count=kwargs.pop("pending_confirmation_count", 0),
            approved_lesson_nonscheduled=kwargs.pop("approved_lesson_nonscheduled", 0),
        )
        db.add(student)
        db.commit()
        return student
    return _make


@pytest.fixture
def make_lesson(db):
    def _make(
        student: Student,
        lesson_date: date,
        lesson_id: Optional[str] = None,
        regular_timeslot: Optional[str] = None,
        actual_timeslot: Optional[str] = None,
        lesson_status: Optional[str] = None,
    ) -> Lesson:
        lesson = Lesson(
            student_id=student.id,
            org_id=student.org_id,
            lesson_date=lesson_date,
            regular_timeslot=regular_timeslot,
            actual_timeslot=actual_timeslot,
            lesson_status=lesson_status,
        )
        if lesson_id:
            lesson.id = lesson_id
        db.add(lesson)
        db.commit()
        return lesson
    return _make


@pytest.fixture
def make_leave_request(db):
    def _make(student: Student, lesson: Lesson, leave_type: str = "sick", status: str = "pending", **kwargs) -> LeaveRequest:
        record = LeaveRequest(
            student_id=student.id,
            org_id=student.org_id,
            lesson_id=lesson.id,
            lesson_date=lesson.lesson_date,
            leave_type=leave_type,
            status=status,
            proof_url=kwargs.pop("proof_url", "https://files.example.com/proof.pdf"),
            **kwargs,
        )
        db.add(record)
        db.commit()
        return record
    return _make
