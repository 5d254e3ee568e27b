import os
from datetime import date, time
from studently.extensions import db
from studently.models import (
    School, Campus, Grade, Section, Student, Period, Role, User,
    AttendanceCode, AttendanceRecord, StateCode,
)
from studently.services.daily_attendance import DailyAttendanceService

ROLES = ['super_admin', 'admin', 'teacher', 'parent', 'student']


def seed_roles():
    for role_name in ROLES:
        if not Role.query.filter_by(name=role_name).first():
            db.session.add(Role(name=role_name))
    db.session.commit()


def get_role_id(role_name):
    role = Role.query.filter_by(name=role_name).first()
    return role.id if role else None


def seed_demo_data(attendance_date=None):
    """
    Demo school with one section, three periods, the P/A/H codes and a
    Present record for every student and period on ``attendance_date``.
    Returns the school.
    """
    attendance_date = attendance_date or date.today()
    seed_roles()

    school = School(name="Woodlands Primary School", address="123 Main St")
    db.session.add(school)
    db.session.flush()

    campus = Campus(school_id=school.id, name="Main Campus")
    grade = Grade(school_id=school.id, name="Grade 4", sort_order=4)
    db.session.add_all([campus, grade])
    db.session.flush()

    section = Section(school_id=school.id, grade_id=grade.id, name="4A")
    db.session.add(section)
    db.session.flush()

    admin_password = os.getenv("ADMIN_PASSWORD", "your_secure_password")
    if not User.query.filter_by(username="admin").first():
        superuser = User(username="admin", full_name="System Admin", role_id=get_role_id('super_admin'))
        superuser.set_password(admin_password)
        db.session.add(superuser)

    if not User.query.filter_by(username="woodlands_admin").first():
        school_admin = User(username="woodlands_admin", role_id=get_role_id('admin'), school_id=school.id)
        school_admin.set_password("adminpass")
        db.session.add(school_admin)

    if not User.query.filter_by(username="woodlands_teacher").first():
        teacher = User(username="woodlands_teacher", role_id=get_role_id('teacher'), school_id=school.id)
        teacher.set_password("teacherpass")
        db.session.add(teacher)

    codes = {
        StateCode.P: AttendanceCode(school_id=school.id, title="Present", short_name="P",
                                    state_code=StateCode.P, is_default=True, sort_order=1, color="#22c55e"),
        StateCode.A: AttendanceCode(school_id=school.id, title="Absent", short_name="A",
                                    state_code=StateCode.A, sort_order=2, color="#ef4444"),
        StateCode.H: AttendanceCode(school_id=school.id, title="Late", short_name="L",
                                    state_code=StateCode.H, sort_order=3, color="#f59e0b"),
    }
    db.session.add_all(codes.values())

    periods = [
        Period(school_id=school.id, period_number=1, start_time=time(8, 0), end_time=time(8, 45)),
        Period(school_id=school.id, period_number=2, start_time=time(8, 45), end_time=time(9, 30)),
        Period(school_id=school.id, period_number=3, start_time=time(9, 45), end_time=time(10, 30)),
    ]
    db.session.add_all(periods)

    students = [
        Student(full_name="Thandi Mokoena", admission_number="WPS-001", school_id=school.id,
                campus_id=campus.id, section_id=section.id),
        Student(full_name="Pieter van Wyk", admission_number="WPS-002", school_id=school.id,
                campus_id=campus.id, section_id=section.id),
    ]
    db.session.add_all(students)
    db.session.flush()

    for student in students:
        for period in periods:
            record = AttendanceRecord(
                school_id=school.id,
                campus_id=campus.id,
                student_id=student.id,
                period_id=period.id,
                attendance_date=attendance_date,
            )
            record.apply_code(codes[StateCode.P])
            db.session.add(record)
    db.session.flush()

    for student in students:
        DailyAttendanceService.recompute(school.id, student.id, attendance_date, campus.id)

    db.session.commit()
    return school
