"""Admin overrides: the batched reconciler behind the grid's UPDATE button,
plus the single-record, add-absences and teacher-marking variants.
"""
from dataclasses import dataclass, field
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError, OperationalError, DBAPIError
from studently.extensions import db
from studently.errors import (
    ValidationError, NotFoundError, InvalidReferenceError, UpstreamError,
)
from studently.models import AttendanceRecord, AttendanceCode, AttendanceDaily, Student, Period, Campus
from studently.services.daily_attendance import DailyAttendanceService
from utils.validators import parse_date


@dataclass
class ReconciliationResult:
    updated: int = 0
    comments_updated: int = 0
    errors: list = field(default_factory=list)

    def add_error(self, item, reason):
        self.errors.append({"item": item, "reason": reason})

    def to_dict(self):
        return {
            "updated": self.updated,
            "comments_updated": self.comments_updated,
            "errors": list(self.errors),
        }


def _is_connection_failure(err):
    if isinstance(err, OperationalError):
        return True
    return isinstance(err, DBAPIError) and err.connection_invalidated


class AttendanceOverrideService:

    @staticmethod
    def _resolve_code_change(record_id, code_id, school_id=None):
        record = db.session.get(AttendanceRecord, str(record_id))
        if not record or (school_id and record.school_id != school_id):
            raise InvalidReferenceError(f"Attendance record {record_id} not found")

        code = db.session.get(AttendanceCode, str(code_id))
        if not code or not code.usable_for(record.school_id, record.campus_id):
            raise InvalidReferenceError(f"Attendance code {code_id} is not valid for this school")
        return record, code

    @staticmethod
    def _apply_override(record, code, override_by=None, reason=None):
        record.apply_code(code, user_id=override_by, override=True, reason=reason)
        DailyAttendanceService.recompute(
            record.school_id, record.student_id, record.attendance_date, record.campus_id
        )

    @staticmethod
    def _upsert_comment(school_id, student_id, attendance_date, comment):
        student = db.session.get(Student, str(student_id))
        if not student or student.school_id != school_id:
            raise InvalidReferenceError(f"Student {student_id} not found in this school")

        daily = AttendanceDaily.query.filter_by(
            school_id=school_id,
            student_id=student.id,
            attendance_date=attendance_date,
        ).first()
        if not daily:
            daily = DailyAttendanceService.recompute(
                school_id, student.id, attendance_date, student.campus_id, create_empty=True
            )
        daily.comment = comment or ""
        return daily

    @staticmethod
    def reconcile(code_changes, comment_changes=None, school_id=None, override_by=None):
        """
        Applies code changes, then comment changes, each independently.

        Item failures are collected in ``errors`` and never abort the batch or
        undo earlier items. Only a lost database connection raises
        (``UpstreamError``).
        """
        result = ReconciliationResult()

        for change in code_changes or []:
            change = change if isinstance(change, dict) else {}
            record_id = change.get("record_id")
            code_id = change.get("attendance_code_id")
            if not record_id or not code_id:
                result.add_error(record_id, ValidationError.reason)
                continue

            try:
                record, code = AttendanceOverrideService._resolve_code_change(record_id, code_id, school_id)
                AttendanceOverrideService._apply_override(record, code, override_by)
                db.session.commit()
                result.updated += 1
            except InvalidReferenceError:
                db.session.rollback()
                result.add_error(record_id, InvalidReferenceError.reason)
            except SQLAlchemyError as e:
                db.session.rollback()
                if _is_connection_failure(e):
                    raise UpstreamError("Attendance store unavailable") from e
                current_app.logger.warning("Override of record %s failed: %s", record_id, e)
                result.add_error(record_id, UpstreamError.reason)

        for change in comment_changes or []:
            change = change if isinstance(change, dict) else {}
            student_id = change.get("student_id")
            item_school_id = change.get("school_id") or school_id

            try:
                if not student_id or not item_school_id:
                    raise ValidationError("school_id and student_id are required")
                if school_id and item_school_id != school_id:
                    raise InvalidReferenceError("Comment targets another school")
                attendance_date = parse_date(change.get("date"))
                AttendanceOverrideService._upsert_comment(
                    item_school_id, student_id, attendance_date, change.get("comment")
                )
                db.session.commit()
                result.comments_updated += 1
            except (ValidationError, InvalidReferenceError) as e:
                db.session.rollback()
                result.add_error(student_id, e.reason)
            except SQLAlchemyError as e:
                db.session.rollback()
                if _is_connection_failure(e):
                    raise UpstreamError("Attendance store unavailable") from e
                current_app.logger.warning("Comment for student %s failed: %s", student_id, e)
                result.add_error(student_id, UpstreamError.reason)

        return result

    @staticmethod
    def override_record(record_id, code_id, override_by=None, reason=None, school_id=None):
        record = db.session.get(AttendanceRecord, str(record_id))
        if not record or (school_id and record.school_id != school_id):
            raise NotFoundError(f"Attendance record {record_id} not found")

        code = db.session.get(AttendanceCode, str(code_id))
        if not code or not code.usable_for(record.school_id, record.campus_id):
            raise InvalidReferenceError(f"Attendance code {code_id} is not valid for this school")

        AttendanceOverrideService._apply_override(record, code, override_by, reason)
        db.session.commit()
        return record

    @staticmethod
    def update_daily_comment(school_id, student_id, date, comment):
        attendance_date = parse_date(date)
        daily = AttendanceOverrideService._upsert_comment(school_id, student_id, attendance_date, comment)
        db.session.commit()
        return daily

    @staticmethod
    def add_absences(school_id, student_ids, period_ids, date, code_id,
                     override_by=None, reason=None, campus_id=None, admin_override=True):
        """
        Creates or updates one record per (student, period) for the date with
        the given code. Students outside the school are skipped, as are
        records whose campus the code does not cover; both count in
        ``skipped``.
        """
        attendance_date = parse_date(date)
        if not student_ids or not period_ids:
            raise ValidationError("student_ids and period_ids are required")
        if not isinstance(student_ids, list) or not isinstance(period_ids, list):
            raise ValidationError("student_ids and period_ids must be lists")

        if campus_id:
            campus = db.session.get(Campus, str(campus_id))
            if not campus or campus.school_id != school_id:
                raise InvalidReferenceError(f"Campus {campus_id} not found in this school")

        code = db.session.get(AttendanceCode, str(code_id))
        if not code or not code.usable_for(school_id, campus_id):
            raise InvalidReferenceError(f"Attendance code {code_id} is not valid for this school")

        periods = Period.query.filter(Period.school_id == school_id, Period.id.in_(period_ids)).all()
        created = updated = skipped = 0
        touched = set()

        for student_id in student_ids:
            student = db.session.get(Student, str(student_id))
            if not student or student.school_id != school_id:
                skipped += 1
                continue

            for period in periods:
                record = AttendanceRecord.query.filter_by(
                    student_id=student.id,
                    period_id=period.id,
                    attendance_date=attendance_date,
                ).first()
                record_campus_id = record.campus_id if record else (campus_id or student.campus_id)
                if not code.usable_for(school_id, record_campus_id):
                    skipped += 1
                    continue

                if record:
                    updated += 1
                else:
                    record = AttendanceRecord(
                        school_id=school_id,
                        campus_id=record_campus_id,
                        student_id=student.id,
                        period_id=period.id,
                        attendance_date=attendance_date,
                    )
                    db.session.add(record)
                    created += 1

                if admin_override:
                    record.apply_code(code, user_id=override_by, override=True, reason=reason)
                else:
                    record.apply_code(code, user_id=override_by)
                record.remarks = reason
                touched.add((student.id, record_campus_id))

        for student_id, record_campus_id in touched:
            DailyAttendanceService.recompute(school_id, student_id, attendance_date, record_campus_id)

        db.session.commit()
        return {"created": created, "updated": updated, "skipped": skipped}

    @staticmethod
    def mark_period(school_id, period_id, date, marks, marked_by=None):
        """Teacher's initial marking of the existing records of one period."""
        attendance_date = parse_date(date)
        result = ReconciliationResult()
        touched = set()

        for mark in marks or []:
            mark = mark if isinstance(mark, dict) else {}
            student_id = mark.get("student_id")
            record = AttendanceRecord.query.filter_by(
                school_id=school_id,
                period_id=period_id,
                attendance_date=attendance_date,
                student_id=student_id,
            ).first()
            code = db.session.get(AttendanceCode, str(mark.get("attendance_code_id")))

            if not record or not code or not code.usable_for(record.school_id, record.campus_id):
                result.add_error(student_id, InvalidReferenceError.reason)
                continue

            record.apply_code(code, user_id=marked_by)
            if "remarks" in mark:
                record.remarks = mark["remarks"]
            touched.add((record.student_id, record.campus_id))
            result.updated += 1

        for student_id, campus_id in touched:
            DailyAttendanceService.recompute(school_id, student_id, attendance_date, campus_id)

        db.session.commit()
        return result
