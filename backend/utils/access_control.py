from flask import g, request
from studently.errors import AuthorizationError


def resolve_school_id(user, requested_id=None):
    """
    Returns the school a request acts on.
    - super_admin may act on any requested school (or their own, if set).
    - Everyone else is pinned to the school on their profile; asking for
      another school raises AuthorizationError.
    """
    if not user:
        raise AuthorizationError("No user provided")

    if requested_id in ("", None):
        requested_id = None

    if user.is_super_admin:
        school_id = requested_id or user.school_id
        if not school_id:
            raise AuthorizationError("school_id is required for super admin requests")
        return school_id

    if not user.school_id:
        raise AuthorizationError("No school assigned to this profile")

    if requested_id and str(requested_id) != user.school_id:
        raise AuthorizationError("Access denied to the requested school")

    return user.school_id


def school_from_request(data=None):
    """``school_id`` from the body or query string, checked against ``g.current_user``."""
    requested = None
    if data:
        requested = data.get("school_id")
    if not requested:
        requested = request.args.get("school_id")
    return resolve_school_id(g.current_user, requested)
