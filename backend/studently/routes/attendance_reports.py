from flask import Blueprint, request, make_response
from studently.services import AttendanceReportService, AttendanceUtilityService
from utils.access_control import school_from_request
from utils.decorators import admin_required
from utils.responses import api_success, api_error

attendance_reports_bp = Blueprint('attendance_reports', __name__)


def _report_args():
    start_date = request.args.get('start_date')
    end_date = request.args.get('end_date')
    filters = {
        "campus_id": request.args.get('campus_id') or None,
        "grade_id": request.args.get('grade_id') or None,
        "section_id": request.args.get('section_id') or None,
    }
    return start_date, end_date, filters


@attendance_reports_bp.route('/reports/summary', methods=['GET'])
@admin_required
def summary():
    school_id = school_from_request()
    start_date, end_date, filters = _report_args()
    if not start_date or not end_date:
        return api_error("start_date and end_date are required", 400)

    return api_success(AttendanceReportService.summary(school_id, start_date, end_date, **filters))


@attendance_reports_bp.route('/reports/summary/export', methods=['GET'])
@admin_required
def summary_export():
    school_id = school_from_request()
    start_date, end_date, filters = _report_args()
    if not start_date or not end_date:
        return api_error("start_date and end_date are required", 400)

    csv_text = AttendanceReportService.summary_csv(school_id, start_date, end_date, **filters)
    response = make_response(csv_text)
    response.headers["Content-Type"] = "text/csv; charset=utf-8"
    response.headers["Content-Disposition"] = (
        f"attachment; filename=attendance_summary_{start_date}_{end_date}.csv"
    )
    return response


@attendance_reports_bp.route('/reports/teacher-completion', methods=['GET'])
@admin_required
def teacher_completion():
    school_id = school_from_request()
    date = request.args.get('date')
    if not date:
        return api_error("date is required", 400)

    rows = AttendanceUtilityService.teacher_completion(
        school_id,
        date,
        campus_id=request.args.get('campus_id') or None,
        period_id=request.args.get('period_id') or None,
    )
    return api_success(rows)
