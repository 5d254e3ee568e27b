from .auth import auth_bp
from .base_route import base_bp
from .attendance import attendance_bp
from .attendance_codes import attendance_codes_bp
from .attendance_reports import attendance_reports_bp


def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(attendance_codes_bp, url_prefix='/api/attendance')
    app.register_blueprint(attendance_reports_bp, url_prefix='/api/attendance')
