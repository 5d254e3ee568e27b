from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from studently.extensions import db

ADMIN_ROLES = {"super_admin", "admin"}
TEACHER_ROLES = ADMIN_ROLES | {"teacher"}


class Role(db.Model):
    __tablename__ = 'roles'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False, unique=True)

    users = db.relationship('User', back_populates='role', lazy=True)


class User(db.Model):
    """A login profile. ``school_id`` is null only for super admins."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    password_hash = db.Column(db.String(512), nullable=False)
    full_name = db.Column(db.String(120), nullable=True)

    role_id = db.Column(db.Integer, db.ForeignKey('roles.id'), nullable=False)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=True)

    role = db.relationship('Role', back_populates='users')
    school = db.relationship('School', back_populates='users')

    @property
    def role_name(self):
        return self.role.name.lower() if self.role else ""

    @property
    def is_super_admin(self):
        return self.role_name == "super_admin"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role.name if self.role else None,
            "school_id": self.school_id,
            "school": self.school.name if self.school else None,
        }


class TokenBlocklist(db.Model):
    __tablename__ = 'token_blocklist'

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    user = db.relationship("User", backref="revoked_tokens")
