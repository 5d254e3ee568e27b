from datetime import datetime
from sqlalchemy import or_
from studently.extensions import db
from studently.errors import ValidationError, NotFoundError
from studently.models import AttendanceCode, AttendanceRecord, StateCode
from utils.validators import require_fields, as_bool, parse_int, parse_text

EDITABLE_FIELDS = ("title", "short_name", "sort_order", "color", "campus_id")


def parse_state_code(value):
    try:
        return StateCode(str(value).strip().upper())
    except ValueError:
        raise ValidationError("state_code must be P, A, or H")


class AttendanceCodeService:

    @staticmethod
    def _scoped_query(school_id, campus_id=None):
        query = AttendanceCode.query.filter(AttendanceCode.school_id == school_id)
        if campus_id:
            query = query.filter(or_(AttendanceCode.campus_id == campus_id, AttendanceCode.campus_id.is_(None)))
        return query

    @staticmethod
    def list_codes(school_id, campus_id=None, include_inactive=False):
        query = AttendanceCodeService._scoped_query(school_id, campus_id)
        if not include_inactive:
            query = query.filter(AttendanceCode.is_active.is_(True))
        return query.order_by(AttendanceCode.sort_order, AttendanceCode.title).all()

    @staticmethod
    def get_code(code_id):
        code = db.session.get(AttendanceCode, str(code_id))
        if not code:
            raise NotFoundError(f"Attendance code {code_id} not found")
        return code

    @staticmethod
    def get_default_code(school_id, campus_id=None):
        code = (
            AttendanceCodeService._scoped_query(school_id, campus_id)
            .filter(AttendanceCode.is_default.is_(True), AttendanceCode.is_active.is_(True))
            .first()
        )
        if not code:
            raise NotFoundError("No default attendance code configured")
        return code

    @staticmethod
    def _unset_default(school_id, campus_id, exclude_id=None):
        query = AttendanceCode.query.filter(
            AttendanceCode.school_id == school_id,
            AttendanceCode.is_default.is_(True),
        )
        if campus_id:
            query = query.filter(AttendanceCode.campus_id == campus_id)
        else:
            query = query.filter(AttendanceCode.campus_id.is_(None))
        if exclude_id:
            query = query.filter(AttendanceCode.id != exclude_id)
        for code in query.all():
            code.is_default = False

    @staticmethod
    def create_code(data):
        require_fields(data, "school_id", "title", "short_name", "state_code")
        state_code = parse_state_code(data["state_code"])
        is_default = as_bool(data.get("is_default"))

        if is_default:
            AttendanceCodeService._unset_default(data["school_id"], data.get("campus_id"))

        code = AttendanceCode(
            school_id=data["school_id"],
            campus_id=data.get("campus_id"),
            title=parse_text(data["title"], "title"),
            short_name=parse_text(data["short_name"], "short_name"),
            state_code=state_code,
            is_default=is_default,
            sort_order=parse_int(data.get("sort_order"), "sort_order"),
            color=data.get("color") or "#22c55e",
            is_active=as_bool(data.get("is_active"), default=True),
        )
        db.session.add(code)
        db.session.commit()
        return code

    @staticmethod
    def update_code(code_id, data):
        code = AttendanceCodeService.get_code(code_id)

        if "state_code" in data and data["state_code"] not in (None, ""):
            code.state_code = parse_state_code(data["state_code"])

        for field in EDITABLE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in ("title", "short_name"):
                value = parse_text(value, field)
            elif field == "sort_order":
                value = parse_int(value, field)
            setattr(code, field, value)

        if "is_active" in data:
            code.is_active = as_bool(data["is_active"], default=True)

        if "is_default" in data:
            is_default = as_bool(data["is_default"])
            if is_default:
                AttendanceCodeService._unset_default(code.school_id, code.campus_id, exclude_id=code.id)
            code.is_default = is_default

        code.updated_at = datetime.utcnow()
        db.session.commit()
        return code

    @staticmethod
    def delete_code(code_id):
        """Deactivates a code still referenced by records, otherwise deletes it."""
        code = AttendanceCodeService.get_code(code_id)
        in_use = AttendanceRecord.query.filter_by(attendance_code_id=code.id).count()

        if in_use:
            code.is_active = False
            code.updated_at = datetime.utcnow()
            db.session.commit()
            return {"deleted": True, "deactivated": True}

        db.session.delete(code)
        db.session.commit()
        return {"deleted": True, "deactivated": False}
