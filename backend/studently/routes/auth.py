from flask import Blueprint, request
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity, get_jwt
from studently.models import User, TokenBlocklist
from studently.extensions import db, limiter
from utils.audit import log_event
from utils.decorators import load_current_user
from utils.responses import api_success, api_error
from utils.validators import json_body
from datetime import datetime
import re

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    data = json_body()
    username = data.get('username') or ''
    password = data.get('password') or ''
    if not isinstance(username, str) or not isinstance(password, str):
        return api_error("Username and password must be strings", 400)
    username = username.strip()
    ip = request.remote_addr

    if not username or not password:
        return api_error("Username and password are required", 400)

    if not re.match(r'^[\w.@+-]{3,}$', username):
        return api_error("Invalid username format", 400)

    user = User.query.filter_by(username=username).first()

    if user and user.check_password(password):
        access_token = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role_name, "school_id": user.school_id}
        )
        log_event("LOGIN_SUCCESS", user_id=user.id, ip=ip, description=f"{username} logged in")
        return api_success({"access_token": access_token, "user": user.to_dict()})

    log_event("LOGIN_FAILED", ip=ip, description=f"Failed login attempt for {username}", level="WARNING")
    return api_error("Invalid username or password", 401)


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    user = load_current_user()
    if not user:
        return api_error("User not found", 404)
    return api_success(user.to_dict())


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    claims = get_jwt()
    user_id = get_jwt_identity()

    token_block = TokenBlocklist(
        jti=claims["jti"],
        user_id=int(user_id),
        expires_at=datetime.utcfromtimestamp(claims["exp"]),
    )
    db.session.add(token_block)
    db.session.commit()

    log_event("LOGOUT", user_id=user_id, ip=request.remote_addr)
    return api_success({"message": "Successfully logged out"})
