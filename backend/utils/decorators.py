from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from studently.extensions import db
from studently.models import User, ADMIN_ROLES, TEACHER_ROLES
from utils.responses import api_error


def load_current_user():
    user_id = get_jwt_identity()
    if not user_id:
        return None
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


def role_required(*allowed_roles):
    """
    Verifies the bearer token and restricts access to users with specific roles.
    The resolved profile is stored on ``g.current_user``.
    Usage: @role_required("admin", "super_admin")
    """
    allowed_roles = set(role.lower() for role in allowed_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()

            user = load_current_user()
            if not user:
                return api_error("User not found", 401)

            if allowed_roles and user.role_name not in allowed_roles:
                return api_error("Access forbidden: insufficient permissions", 403)

            g.current_user = user
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def admin_required(fn):
    return role_required(*ADMIN_ROLES)(fn)


def teacher_required(fn):
    return role_required(*TEACHER_ROLES)(fn)
