from flask import current_app
from studently.extensions import db
from studently.models import AttendanceRecord, AttendanceDaily

FULL_PRESENCE = 1.0
HALF_PRESENCE = 0.5
NO_PRESENCE = 0.0


class DailyAttendanceService:
    """Keeps ``attendance_daily`` in step with the period-level records."""

    @staticmethod
    def thresholds():
        config = current_app.config
        return (
            config.get("ATTENDANCE_FULL_DAY_RATIO", 1.0),
            config.get("ATTENDANCE_HALF_DAY_RATIO", 0.5),
        )

    @staticmethod
    def compute_state(records, full_ratio=1.0, half_ratio=0.5):
        """
        Returns ``(state_value, total_minutes, minutes_present)`` for one
        student-day. Uncoded records count as present. No records -> state None.
        """
        total_minutes = 0
        minutes_present = 0.0
        for record in records:
            minutes = record.period.length_minutes if record.period else 0
            contribution = record.attendance_code.state_contribution if record.attendance_code else 1.0
            total_minutes += minutes
            minutes_present += minutes * contribution

        if not records:
            return None, 0, 0.0
        if total_minutes == 0:
            return FULL_PRESENCE, 0, 0.0

        ratio = minutes_present / total_minutes
        if ratio >= full_ratio:
            state = FULL_PRESENCE
        elif ratio >= half_ratio:
            state = HALF_PRESENCE
        else:
            state = NO_PRESENCE
        return state, total_minutes, round(minutes_present, 2)

    @staticmethod
    def recompute(school_id, student_id, attendance_date, campus_id=None, create_empty=False):
        """
        Upserts the daily row for a student-day from its records. The comment
        is preserved. Does not commit.
        """
        records = AttendanceRecord.query.filter_by(
            school_id=school_id,
            student_id=student_id,
            attendance_date=attendance_date,
        ).all()

        daily = AttendanceDaily.query.filter_by(
            school_id=school_id,
            student_id=student_id,
            attendance_date=attendance_date,
        ).first()

        if not records and not daily and not create_empty:
            return None

        if not daily:
            daily = AttendanceDaily(
                school_id=school_id,
                campus_id=campus_id,
                student_id=student_id,
                attendance_date=attendance_date,
            )
            db.session.add(daily)

        full_ratio, half_ratio = DailyAttendanceService.thresholds()
        state, total, present = DailyAttendanceService.compute_state(records, full_ratio, half_ratio)
        daily.state_value = state
        daily.total_minutes = total
        daily.minutes_present = present
        return daily
