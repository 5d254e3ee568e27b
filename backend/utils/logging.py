from flask import request, jsonify, make_response
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from datetime import datetime


def log_rate_limit_violation(request_limit):
    from studently.extensions import db
    from studently.models import AuditLog

    try:
        verify_jwt_in_request(optional=True)
        user_id = get_jwt_identity()
    except Exception:
        user_id = None

    log = AuditLog(
        user_id=int(user_id) if user_id else None,
        action=f"RATE_LIMIT_EXCEEDED: {request.method} {request.path}",
        ip_address=request.remote_addr,
        timestamp=datetime.utcnow(),
    )
    db.session.add(log)
    db.session.commit()

    return make_response(jsonify({
        "success": False,
        "data": None,
        "error": "Rate limit exceeded. Please slow down."
    }), 429)
