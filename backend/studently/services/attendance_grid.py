from sqlalchemy import or_
from sqlalchemy.orm import joinedload
from studently.extensions import db
from studently.errors import NotFoundError
from studently.models import (
    AttendanceRecord, AttendanceDaily, Period, Student, Section, StateCode,
)
from utils.validators import parse_date


class AttendanceGridService:
    """Read side of the administration grid: student x period cells for a date."""

    @staticmethod
    def get_periods(school_id, campus_id=None):
        query = Period.query.filter(Period.school_id == school_id, Period.is_active.is_(True))
        if campus_id:
            query = query.filter(or_(Period.campus_id == campus_id, Period.campus_id.is_(None)))
        return sorted(query.all(), key=lambda p: p.ordering_key)

    @staticmethod
    def get_admin_period_grid(school_id, date, section_id=None, grade_id=None, campus_id=None):
        """
        Returns ``{"students": [...], "periods": [...]}``.

        Periods are the school's configured columns and come back even when
        no records exist for the date. Students are only those with records,
        ordered by name. ``section_id`` wins over ``grade_id``.
        """
        attendance_date = parse_date(date)

        query = (
            AttendanceRecord.query
            .options(
                joinedload(AttendanceRecord.student).joinedload(Student.section).joinedload(Section.grade),
                joinedload(AttendanceRecord.attendance_code),
                joinedload(AttendanceRecord.period),
            )
            .filter(
                AttendanceRecord.school_id == school_id,
                AttendanceRecord.attendance_date == attendance_date,
            )
        )
        if campus_id:
            query = query.filter(AttendanceRecord.campus_id == campus_id)
        if section_id:
            query = query.join(Student, AttendanceRecord.student_id == Student.id).filter(Student.section_id == section_id)
        elif grade_id:
            query = (
                query.join(Student, AttendanceRecord.student_id == Student.id)
                .join(Section, Student.section_id == Section.id)
                .filter(Section.grade_id == grade_id)
            )

        records = query.all()

        periods = {p.id: p for p in AttendanceGridService.get_periods(school_id, campus_id)}
        for record in records:
            if record.period and record.period_id not in periods:
                periods[record.period_id] = record.period
        ordered_periods = sorted(periods.values(), key=lambda p: p.ordering_key)

        rows = {}
        for record in records:
            student = record.student
            row = rows.get(record.student_id)
            if row is None:
                row = rows[record.student_id] = {
                    "student_id": record.student_id,
                    "student_name": student.full_name if student else "",
                    "student_number": student.admission_number if student else None,
                    "section_name": student.section_name if student else None,
                    "grade_name": student.grade_name if student else None,
                    "period_records": {},
                }
            row["period_records"][record.period_id] = {
                "record_id": record.id,
                "attendance_code_id": record.attendance_code_id,
                "attendance_code": record.attendance_code.to_brief() if record.attendance_code else None,
                "status": record.status,
                "admin_override": record.admin_override,
            }

        daily_map = {}
        if rows:
            dailies = AttendanceDaily.query.filter(
                AttendanceDaily.school_id == school_id,
                AttendanceDaily.attendance_date == attendance_date,
                AttendanceDaily.student_id.in_(list(rows.keys())),
            ).all()
            daily_map = {d.student_id: d for d in dailies}

        students = []
        for row in rows.values():
            daily = daily_map.get(row["student_id"])
            row["state_value"] = daily.state_value if daily else None
            row["comment"] = (daily.comment or "") if daily else ""
            row["minutes_present"] = daily.minutes_present if daily else 0
            row["total_minutes"] = daily.total_minutes if daily else 0
            students.append(row)

        students.sort(key=lambda r: ((r["student_name"] or "").lower(), r["student_id"]))

        return {
            "students": students,
            "periods": [p.to_dict() for p in ordered_periods],
        }

    @staticmethod
    def filter_exceptions(rows):
        """Rows below full presence, or with any non-present period code."""
        exceptions = []
        for row in rows:
            state = row.get("state_value")
            if state is not None and state < 1.0:
                exceptions.append(row)
                continue
            for cell in row.get("period_records", {}).values():
                code = cell.get("attendance_code")
                if code and code.get("state_code") and code["state_code"] != StateCode.P.value:
                    exceptions.append(row)
                    break
        return exceptions

    @staticmethod
    def get_student_period_attendance(student_id, date, school_id=None):
        attendance_date = parse_date(date)
        student = db.session.get(Student, str(student_id))
        if not student or (school_id and student.school_id != school_id):
            raise NotFoundError(f"Student {student_id} not found")

        records = (
            AttendanceRecord.query
            .options(joinedload(AttendanceRecord.period), joinedload(AttendanceRecord.attendance_code))
            .filter_by(student_id=student.id, attendance_date=attendance_date)
            .all()
        )
        records.sort(key=lambda r: r.period.ordering_key if r.period else (0, 0))
        return [r.to_dict() for r in records]
