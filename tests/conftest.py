# tests/conftest.py

from datetime import date
import pytest
from flask_jwt_extended import create_access_token
from studently import create_app
from studently.config import Config
from studently.extensions import db as _db
from studently.models import (
    School, Campus, Grade, Section, Student, Period, Role, User,
    AttendanceCode, AttendanceRecord, StateCode,
)
from studently.services.daily_attendance import DailyAttendanceService

SCENARIO_DATE = date(2026, 2, 10)


class TestingConfig(Config):
    """Configuration for the test run."""
    TESTING = True
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"


@pytest.fixture(scope='function')
def test_app(tmp_path):
    """Fresh application and schema for each test."""
    TestingConfig.AUDIT_LOG_FILE = str(tmp_path / "audit.log")
    app = create_app(config_class=TestingConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def db_session(test_app):
    with test_app.app_context():
        yield _db.session


@pytest.fixture(scope='function')
def test_client(test_app):
    return test_app.test_client()


def _make_user(session, username, role_name, school_id=None):
    role = Role.query.filter_by(name=role_name).first()
    if not role:
        role = Role(name=role_name)
        session.add(role)
        session.flush()
    user = User(username=username, role_id=role.id, school_id=school_id)
    user.set_password("password123")
    session.add(user)
    session.flush()
    return user


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def school_setup(db_session):
    """
    School S1 with two students in one section, three 45 minute periods and
    the Present/Absent/Late codes. Every student is Present in every period
    on 2026-02-10.
    """
    school = School(name="S1")
    other_school = School(name="S2")
    db_session.add_all([school, other_school])
    db_session.flush()

    campus = Campus(school_id=school.id, name="Main")
    grade = Grade(school_id=school.id, name="Grade 4")
    db_session.add_all([campus, grade])
    db_session.flush()
    section = Section(school_id=school.id, grade_id=grade.id, name="4A")
    db_session.add(section)
    db_session.flush()

    codes = {
        "P": AttendanceCode(school_id=school.id, title="Present", short_name="P",
                            state_code=StateCode.P, is_default=True, sort_order=1),
        "A": AttendanceCode(school_id=school.id, title="Absent", short_name="A",
                            state_code=StateCode.A, sort_order=2),
        "H": AttendanceCode(school_id=school.id, title="Late", short_name="L",
                            state_code=StateCode.H, sort_order=3),
    }
    foreign_code = AttendanceCode(school_id=other_school.id, title="Absent", short_name="A",
                                  state_code=StateCode.A)
    db_session.add_all(list(codes.values()) + [foreign_code])

    periods = [
        Period(school_id=school.id, period_number=n, length_minutes=45)
        for n in (1, 2, 3)
    ]
    db_session.add_all(periods)

    students = [
        Student(full_name="Amy Adams", admission_number="S-001", school_id=school.id,
                campus_id=campus.id, section_id=section.id),
        Student(full_name="Ben Brown", admission_number="S-002", school_id=school.id,
                campus_id=campus.id, section_id=section.id),
    ]
    db_session.add_all(students)
    db_session.flush()

    records = {}
    for s_idx, student in enumerate(students):
        for p_idx, period in enumerate(periods):
            record = AttendanceRecord(
                school_id=school.id,
                campus_id=campus.id,
                student_id=student.id,
                period_id=period.id,
                attendance_date=SCENARIO_DATE,
            )
            record.apply_code(codes["P"])
            db_session.add(record)
            records[(s_idx, p_idx)] = record
    db_session.flush()

    for student in students:
        DailyAttendanceService.recompute(school.id, student.id, SCENARIO_DATE, campus.id)

    admin = _make_user(db_session, "s1_admin", "admin", school.id)
    teacher = _make_user(db_session, "s1_teacher", "teacher", school.id)
    super_admin = _make_user(db_session, "root", "super_admin")
    other_admin = _make_user(db_session, "s2_admin", "admin", other_school.id)
    db_session.commit()

    return {
        "school": school,
        "other_school": other_school,
        "campus": campus,
        "grade": grade,
        "section": section,
        "codes": codes,
        "foreign_code": foreign_code,
        "periods": periods,
        "students": students,
        "records": records,
        "admin": admin,
        "teacher": teacher,
        "super_admin": super_admin,
        "other_admin": other_admin,
        "date": SCENARIO_DATE,
    }


@pytest.fixture(scope='function')
def headers_for(test_app):
    """Bearer headers for a given user."""
    return auth_headers
