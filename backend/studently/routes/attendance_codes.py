from flask import Blueprint, request
from studently.services import AttendanceCodeService
from studently.errors import AuthorizationError
from utils.access_control import school_from_request
from utils.decorators import admin_required, teacher_required
from utils.responses import api_success
from utils.validators import as_bool, json_body

attendance_codes_bp = Blueprint('attendance_codes', __name__)


def _code_in_scope(code_id, data=None):
    code = AttendanceCodeService.get_code(code_id)
    if code.school_id != school_from_request(data or {"school_id": code.school_id}):
        raise AuthorizationError("Access denied to this attendance code")
    return code


@attendance_codes_bp.route('/codes', methods=['GET'])
@teacher_required
def list_codes():
    school_id = school_from_request()
    codes = AttendanceCodeService.list_codes(
        school_id,
        campus_id=request.args.get('campus_id') or None,
        include_inactive=as_bool(request.args.get('include_inactive')),
    )
    return api_success([c.to_dict() for c in codes])


@attendance_codes_bp.route('/codes/default', methods=['GET'])
@teacher_required
def default_code():
    school_id = school_from_request()
    code = AttendanceCodeService.get_default_code(school_id, request.args.get('campus_id') or None)
    return api_success(code.to_dict())


@attendance_codes_bp.route('/codes/<code_id>', methods=['GET'])
@teacher_required
def get_code(code_id):
    return api_success(_code_in_scope(code_id).to_dict())


@attendance_codes_bp.route('/codes', methods=['POST'])
@admin_required
def create_code():
    data = json_body()
    data['school_id'] = school_from_request(data)
    code = AttendanceCodeService.create_code(data)
    return api_success(code.to_dict(), 201)


@attendance_codes_bp.route('/codes/<code_id>', methods=['PUT'])
@admin_required
def update_code(code_id):
    data = json_body()
    _code_in_scope(code_id)
    data.pop('school_id', None)
    code = AttendanceCodeService.update_code(code_id, data)
    return api_success(code.to_dict())


@attendance_codes_bp.route('/codes/<code_id>', methods=['DELETE'])
@admin_required
def delete_code(code_id):
    _code_in_scope(code_id)
    return api_success(AttendanceCodeService.delete_code(code_id))
