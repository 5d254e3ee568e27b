from collections import defaultdict
from io import StringIO
import pandas as pd
from studently.models import AttendanceRecord, AttendanceDaily, Student, Section
from utils.validators import parse_date_range

SUMMARY_COLUMNS = [
    "student_id", "student_name", "student_number", "grade_name", "section_name",
    "total_days", "days_present", "days_half", "days_absent",
    "total_minutes", "minutes_present", "attendance_percentage",
]


def attendance_percentage(days_present, days_half, total_days):
    if not total_days:
        return 0.0
    return round((days_present + 0.5 * days_half) / total_days * 100, 2)


class AttendanceReportService:

    @staticmethod
    def _students(school_id, campus_id=None, grade_id=None, section_id=None):
        query = Student.query.filter(Student.school_id == school_id, Student.is_active.is_(True))
        if campus_id:
            query = query.filter(Student.campus_id == campus_id)
        if section_id:
            query = query.filter(Student.section_id == section_id)
        elif grade_id:
            query = query.join(Section, Student.section_id == Section.id).filter(Section.grade_id == grade_id)
        return query.order_by(Student.full_name).all()

    @staticmethod
    def summary(school_id, start_date, end_date, campus_id=None, grade_id=None, section_id=None):
        """Per-student totals over a date range, built from the daily rows."""
        start, end = parse_date_range(start_date, end_date)
        students = AttendanceReportService._students(school_id, campus_id, grade_id, section_id)
        if not students:
            return []
        student_ids = [s.id for s in students]

        dailies = AttendanceDaily.query.filter(
            AttendanceDaily.school_id == school_id,
            AttendanceDaily.student_id.in_(student_ids),
            AttendanceDaily.attendance_date.between(start, end),
        ).all()
        records = AttendanceRecord.query.filter(
            AttendanceRecord.school_id == school_id,
            AttendanceRecord.student_id.in_(student_ids),
            AttendanceRecord.attendance_date.between(start, end),
        ).all()

        days_by_student = defaultdict(list)
        for daily in dailies:
            if daily.state_value is not None:
                days_by_student[daily.student_id].append(daily)

        breakdown = defaultdict(lambda: defaultdict(int))
        for record in records:
            key = record.attendance_code.short_name if record.attendance_code else record.status
            breakdown[record.student_id][key] += 1

        summary = []
        for student in students:
            days = days_by_student.get(student.id, [])
            present = sum(1 for d in days if d.state_value >= 1.0)
            half = sum(1 for d in days if 0 < d.state_value < 1.0)
            absent = sum(1 for d in days if d.state_value == 0)
            summary.append({
                "student_id": student.id,
                "student_name": student.full_name,
                "student_number": student.admission_number,
                "grade_name": student.grade_name,
                "section_name": student.section_name,
                "total_days": len(days),
                "days_present": present,
                "days_half": half,
                "days_absent": absent,
                "total_minutes": sum(d.total_minutes or 0 for d in days),
                "minutes_present": round(sum(d.minutes_present or 0 for d in days), 2),
                "attendance_percentage": attendance_percentage(present, half, len(days)),
                "state_code_breakdown": dict(breakdown.get(student.id, {})),
            })
        return summary

    @staticmethod
    def summary_csv(school_id, start_date, end_date, **filters):
        rows = AttendanceReportService.summary(school_id, start_date, end_date, **filters)
        df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS + ["state_code_breakdown"])
        df["state_code_breakdown"] = df["state_code_breakdown"].apply(
            lambda b: "; ".join(f"{k}={v}" for k, v in sorted(b.items())) if isinstance(b, dict) else ""
        )
        buffer = StringIO()
        df.to_csv(buffer, index=False)
        return buffer.getvalue()
