from datetime import datetime
from sqlalchemy import or_
from studently.extensions import db
from studently.models import AttendanceRecord, AttendanceCompleted, Period, User
from studently.errors import InvalidReferenceError, ValidationError
from studently.services.daily_attendance import DailyAttendanceService
from utils.validators import parse_date, parse_date_range, parse_int


class AttendanceUtilityService:
    """Maintenance jobs for the attendance tables."""

    @staticmethod
    def recalculate(school_id, start_date, end_date, campus_id=None):
        start, end = parse_date_range(start_date, end_date)
        query = db.session.query(
            AttendanceRecord.student_id,
            AttendanceRecord.attendance_date,
            AttendanceRecord.campus_id,
        ).filter(
            AttendanceRecord.school_id == school_id,
            AttendanceRecord.attendance_date.between(start, end),
        )
        if campus_id:
            query = query.filter(AttendanceRecord.campus_id == campus_id)

        seen = set()
        for student_id, attendance_date, record_campus_id in query.all():
            if (student_id, attendance_date) in seen:
                continue
            seen.add((student_id, attendance_date))
            DailyAttendanceService.recompute(school_id, student_id, attendance_date, record_campus_id)

        db.session.commit()
        return {"recalculated": len(seen)}

    @staticmethod
    def find_duplicates(school_id, start_date=None, end_date=None):
        """
        Groups of records sharing (student, period, date). Inside a group the
        most recently marked record comes first; it is the one kept.
        """
        query = AttendanceRecord.query.filter(AttendanceRecord.school_id == school_id)
        if bool(start_date) != bool(end_date):
            raise ValidationError("start_date and end_date must be given together")
        if start_date:
            start, end = parse_date_range(start_date, end_date)
            query = query.filter(AttendanceRecord.attendance_date.between(start, end))

        groups = {}
        for record in query.all():
            key = (record.student_id, record.period_id, record.attendance_date)
            groups.setdefault(key, []).append(record)

        duplicates = []
        for (student_id, period_id, attendance_date), records in groups.items():
            if len(records) < 2:
                continue
            records.sort(key=lambda r: r.marked_at or datetime.min, reverse=True)
            duplicates.append({
                "student_id": student_id,
                "period_id": period_id,
                "attendance_date": attendance_date.isoformat(),
                "record_ids": [r.id for r in records],
            })
        duplicates.sort(key=lambda d: (d["attendance_date"], d["student_id"], d["period_id"]))
        return duplicates

    @staticmethod
    def delete_duplicates(school_id, start_date=None, end_date=None):
        groups = AttendanceUtilityService.find_duplicates(school_id, start_date, end_date)
        deleted = 0
        touched = set()
        for group in groups:
            for record_id in group["record_ids"][1:]:
                record = db.session.get(AttendanceRecord, record_id)
                if record:
                    touched.add((record.student_id, record.attendance_date, record.campus_id))
                    db.session.delete(record)
                    deleted += 1

        db.session.flush()
        for student_id, attendance_date, campus_id in touched:
            DailyAttendanceService.recompute(school_id, student_id, attendance_date, campus_id)

        db.session.commit()
        return {"deleted": deleted}

    @staticmethod
    def mark_completed(school_id, staff_id, date, period_id, table_name=0, campus_id=None):
        school_date = parse_date(date)
        table_name = parse_int(table_name, "table_name")
        period = db.session.get(Period, str(period_id))
        if not period or period.school_id != school_id:
            raise InvalidReferenceError(f"Period {period_id} not found in this school")

        completed = AttendanceCompleted.query.filter_by(
            staff_id=staff_id,
            school_date=school_date,
            period_id=period.id,
            table_name=table_name,
        ).first()
        if not completed:
            completed = AttendanceCompleted(
                school_id=school_id,
                campus_id=campus_id,
                staff_id=staff_id,
                school_date=school_date,
                period_id=period.id,
                table_name=table_name,
            )
            db.session.add(completed)
        completed.created_at = datetime.utcnow()
        db.session.commit()
        return completed

    @staticmethod
    def teacher_completion(school_id, date, campus_id=None, period_id=None):
        """
        Per staff member, which of the day's active periods have been marked
        completed. Staff appear once they completed a period or marked a
        record on that date.
        """
        school_date = parse_date(date)
        periods_query = Period.query.filter(Period.school_id == school_id, Period.is_active.is_(True))
        if campus_id:
            periods_query = periods_query.filter(or_(Period.campus_id == campus_id, Period.campus_id.is_(None)))
        periods = sorted(periods_query.all(), key=lambda p: p.ordering_key)
        if period_id:
            periods = [p for p in periods if p.id == period_id]
        if not periods:
            return []

        period_ids = [p.id for p in periods]
        completions = AttendanceCompleted.query.filter(
            AttendanceCompleted.school_id == school_id,
            AttendanceCompleted.school_date == school_date,
            AttendanceCompleted.period_id.in_(period_ids),
        ).all()
        completed = {(c.staff_id, c.period_id) for c in completions}

        marked_query = db.session.query(AttendanceRecord.marked_by, AttendanceRecord.period_id).filter(
            AttendanceRecord.school_id == school_id,
            AttendanceRecord.attendance_date == school_date,
            AttendanceRecord.marked_by.isnot(None),
            AttendanceRecord.period_id.in_(period_ids),
        )
        if campus_id:
            marked_query = marked_query.filter(AttendanceRecord.campus_id == campus_id)
        marked = set(marked_query.distinct().all())

        staff_ids = {staff_id for staff_id, _ in completed | marked}
        if not staff_ids:
            return []
        staff = User.query.filter(User.id.in_(staff_ids)).all()

        rows = []
        for user in staff:
            rows.append({
                "staff_id": user.id,
                "staff_name": user.full_name or user.username,
                "date": school_date.isoformat(),
                "periods": [
                    {
                        "period_id": p.id,
                        "period_name": p.display_name,
                        "period_number": p.period_number,
                        "completed": (user.id, p.id) in completed,
                        "marked": (user.id, p.id) in marked,
                    }
                    for p in periods
                ],
            })
        rows.sort(key=lambda r: r["staff_name"].lower())
        return rows
