from flask import Flask
from flask_cors import CORS
from .config import Config
from .extensions import db, jwt, limiter, migrate
from .errors import register_error_handlers
from utils.responses import api_error


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    jwt.init_app(app)
    CORS(app, origins=app.config["FRONTEND_ORIGIN"], supports_credentials=True)
    limiter.init_app(app)
    migrate.init_app(app, db)

    from .models import TokenBlocklist
    from .routes import register_routes
    register_routes(app)
    register_error_handlers(app)

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        jti = jwt_payload["jti"]
        token = db.session.query(TokenBlocklist).filter_by(jti=jti).first()
        return token is not None

    @jwt.unauthorized_loader
    def missing_token(reason):
        return api_error(reason, 401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return api_error(reason, 401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return api_error("Token has expired", 401)

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return api_error("Token has been revoked", 401)

    with app.app_context():
        db.create_all()

    return app
