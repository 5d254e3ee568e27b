from datetime import date, datetime
from flask import request
from studently.errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value, field="date"):
    """Accepts a ``date`` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field} is required")
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid {field} '{value}', expected YYYY-MM-DD")


def parse_date_range(start, end):
    start_date = parse_date(start, "start_date")
    end_date = parse_date(end, "end_date")
    if start_date > end_date:
        raise ValidationError("start_date must be on or before end_date")
    return start_date, end_date


def require_fields(data, *fields):
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")


def as_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def json_body():
    """The request's JSON object, or ``{}`` when no body was sent."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def parse_int(value, field, default=0):
    if value in (None, ""):
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def parse_text(value, field):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string")
    return value.strip()
