from flask import Blueprint, request, g, current_app
from studently.services import (
    AttendanceGridService, AttendanceOverrideService, AttendanceUtilityService,
)
from utils.access_control import school_from_request
from utils.audit import log_event
from utils.decorators import admin_required, teacher_required
from utils.responses import api_success, api_error
from utils.validators import require_fields, as_bool, json_body

attendance_bp = Blueprint('attendance', __name__)


@attendance_bp.route('/admin-period-grid', methods=['GET'])
@admin_required
def admin_period_grid():
    school_id = school_from_request()
    date = request.args.get('date')
    if not date:
        return api_error("date is required", 400)

    grid = AttendanceGridService.get_admin_period_grid(
        school_id,
        date,
        section_id=request.args.get('section_id') or None,
        grade_id=request.args.get('grade_id') or None,
        campus_id=request.args.get('campus_id') or None,
    )
    if as_bool(request.args.get('exceptions_only')):
        grid["students"] = AttendanceGridService.filter_exceptions(grid["students"])
    return api_success(grid)


@attendance_bp.route('/admin/student/<student_id>/periods', methods=['GET'])
@admin_required
def student_periods(student_id):
    school_id = school_from_request()
    date = request.args.get('date')
    if not date:
        return api_error("date is required", 400)

    records = AttendanceGridService.get_student_period_attendance(student_id, date, school_id)
    return api_success(records)


@attendance_bp.route('/bulk-override', methods=['POST'])
@admin_required
def bulk_override():
    data = json_body()
    changes = data.get('changes')
    if not isinstance(changes, list) or not changes:
        return api_error("changes must be a non-empty list", 400)

    school_id = school_from_request(data)
    result = AttendanceOverrideService.reconcile(changes, school_id=school_id, override_by=g.current_user.id)

    log_event(
        "ATTENDANCE_BULK_OVERRIDE",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"school={school_id} updated={result.updated} errors={len(result.errors)}",
    )
    return api_success({"updated": result.updated, "errors": result.errors})


@attendance_bp.route('/reconcile', methods=['POST'])
@admin_required
def reconcile():
    data = json_body()
    changes = data.get('changes') or []
    comments = data.get('comments') or []
    if not isinstance(changes, list) or not isinstance(comments, list):
        return api_error("changes and comments must be lists", 400)

    school_id = school_from_request(data)
    result = AttendanceOverrideService.reconcile(
        changes, comments, school_id=school_id, override_by=g.current_user.id
    )

    log_event(
        "ATTENDANCE_BULK_OVERRIDE",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=(
            f"school={school_id} updated={result.updated} "
            f"comments={result.comments_updated} errors={len(result.errors)}"
        ),
    )
    return api_success(result.to_dict())


@attendance_bp.route('/override', methods=['POST'])
@admin_required
def override():
    data = json_body()
    require_fields(data, 'record_id', 'attendance_code_id')
    school_id = school_from_request(data)

    record = AttendanceOverrideService.override_record(
        data['record_id'],
        data['attendance_code_id'],
        override_by=g.current_user.id,
        reason=data.get('reason'),
        school_id=school_id,
    )
    log_event(
        "ATTENDANCE_OVERRIDE",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"record={record.id} code={record.attendance_code_id}",
    )
    return api_success(record.to_dict())


@attendance_bp.route('/daily-comment', methods=['POST'])
@admin_required
def daily_comment():
    data = json_body()
    require_fields(data, 'student_id', 'date')
    school_id = school_from_request(data)

    daily = AttendanceOverrideService.update_daily_comment(
        school_id, data['student_id'], data['date'], data.get('comment')
    )
    log_event(
        "ATTENDANCE_COMMENT",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"student={daily.student_id} date={daily.attendance_date.isoformat()}",
    )
    return api_success(daily.to_dict())


@attendance_bp.route('/admin/add-absences', methods=['POST'])
@admin_required
def add_absences():
    data = json_body()
    require_fields(data, 'student_ids', 'period_ids', 'date', 'attendance_code_id')
    school_id = school_from_request(data)

    result = AttendanceOverrideService.add_absences(
        school_id,
        data['student_ids'],
        data['period_ids'],
        data['date'],
        data['attendance_code_id'],
        override_by=g.current_user.id,
        reason=data.get('reason'),
        campus_id=data.get('campus_id'),
        admin_override=as_bool(data.get('admin_override'), default=True),
    )
    current_app.logger.info("Add absences for school %s: %s", school_id, result)
    return api_success(result, 201 if result["created"] else 200)


@attendance_bp.route('/mark', methods=['POST'])
@teacher_required
def mark():
    data = json_body()
    require_fields(data, 'period_id', 'date')
    marks = data.get('marks')
    if not isinstance(marks, list) or not marks:
        return api_error("marks must be a non-empty list", 400)

    school_id = school_from_request(data)
    result = AttendanceOverrideService.mark_period(
        school_id, data['period_id'], data['date'], marks, marked_by=g.current_user.id
    )
    return api_success({"updated": result.updated, "errors": result.errors})


@attendance_bp.route('/completed', methods=['POST'])
@teacher_required
def completed():
    data = json_body()
    require_fields(data, 'period_id', 'date')
    school_id = school_from_request(data)

    mark = AttendanceUtilityService.mark_completed(
        school_id,
        g.current_user.id,
        data['date'],
        data['period_id'],
        table_name=data.get('table_name', 0),
        campus_id=data.get('campus_id'),
    )
    return api_success(mark.to_dict())


@attendance_bp.route('/utilities/recalculate', methods=['POST'])
@admin_required
def recalculate():
    data = json_body()
    require_fields(data, 'start_date', 'end_date')
    school_id = school_from_request(data)

    result = AttendanceUtilityService.recalculate(
        school_id, data['start_date'], data['end_date'], campus_id=data.get('campus_id')
    )
    return api_success(result)


@attendance_bp.route('/utilities/duplicates', methods=['GET'])
@admin_required
def duplicates():
    school_id = school_from_request()
    groups = AttendanceUtilityService.find_duplicates(
        school_id, request.args.get('start_date'), request.args.get('end_date')
    )
    return api_success(groups)


@attendance_bp.route('/utilities/duplicates/delete', methods=['POST'])
@admin_required
def delete_duplicates():
    data = json_body()
    school_id = school_from_request(data)

    result = AttendanceUtilityService.delete_duplicates(
        school_id, data.get('start_date'), data.get('end_date')
    )
    log_event(
        "ATTENDANCE_DUPLICATES_DELETED",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"school={school_id} deleted={result['deleted']}",
    )
    return api_success(result)
