# tests/test_daily_attendance.py

from types import SimpleNamespace
from studently.models import AttendanceDaily, StateCode
from studently.services.daily_attendance import DailyAttendanceService


def _record(state_code=None, minutes=45):
    code = SimpleNamespace(state_contribution=StateCode(state_code).contribution) if state_code else None
    return SimpleNamespace(period=SimpleNamespace(length_minutes=minutes), attendance_code=code)


class TestComputeState:

    def test_no_records_has_no_state(self):
        assert DailyAttendanceService.compute_state([]) == (None, 0, 0.0)

    def test_all_present_is_full_day(self):
        state, total, present = DailyAttendanceService.compute_state([_record("P")] * 3)
        assert state == 1.0
        assert total == 135
        assert present == 135

    def test_one_absence_of_three_is_half_day(self):
        records = [_record("P"), _record("A"), _record("P")]
        state, total, present = DailyAttendanceService.compute_state(records)
        assert state == 0.5
        assert present == 90

    def test_two_absences_of_three_is_absent(self):
        records = [_record("A"), _record("A"), _record("P")]
        assert DailyAttendanceService.compute_state(records)[0] == 0.0

    def test_late_counts_half_the_minutes(self):
        records = [_record("H"), _record("P"), _record("P")]
        state, _, present = DailyAttendanceService.compute_state(records)
        assert present == 112.5
        assert state == 0.5

    def test_uncoded_record_counts_as_present(self):
        state, _, _ = DailyAttendanceService.compute_state([_record(None), _record("P")])
        assert state == 1.0

    def test_thresholds_are_applied(self):
        records = [_record("P"), _record("A"), _record("P")]
        state, _, _ = DailyAttendanceService.compute_state(records, full_ratio=1.0, half_ratio=0.7)
        assert state == 0.0


class TestRecompute:

    def test_recompute_reflects_changed_code(self, test_app, db_session, school_setup):
        record = school_setup["records"][(0, 1)]
        record.apply_code(school_setup["codes"]["A"])
        daily = DailyAttendanceService.recompute(
            school_setup["school"].id, record.student_id, record.attendance_date
        )
        db_session.commit()

        assert daily.state_value == 0.5
        assert daily.minutes_present == 90
        assert daily.total_minutes == 135

    def test_recompute_keeps_comment(self, test_app, db_session, school_setup):
        student = school_setup["students"][0]
        daily = AttendanceDaily.query.filter_by(student_id=student.id).first()
        daily.comment = "Doctor's appointment"
        db_session.commit()

        DailyAttendanceService.recompute(school_setup["school"].id, student.id, school_setup["date"])
        db_session.commit()

        assert AttendanceDaily.query.filter_by(student_id=student.id).first().comment == "Doctor's appointment"

    def test_recompute_without_records_creates_nothing(self, test_app, db_session, school_setup):
        from datetime import date
        student = school_setup["students"][0]
        result = DailyAttendanceService.recompute(school_setup["school"].id, student.id, date(2026, 3, 1))
        assert result is None
