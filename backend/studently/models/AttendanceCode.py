from studently.extensions import db
from .base import new_id, TimestampMixin, StateCode


class AttendanceCode(db.Model, TimestampMixin):
    __tablename__ = 'attendance_codes'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False, index=True)
    campus_id = db.Column(db.String(36), db.ForeignKey('campuses.id'), nullable=True)
    title = db.Column(db.String(80), nullable=False)
    short_name = db.Column(db.String(10), nullable=False)
    state_code = db.Column(db.Enum(StateCode), nullable=False, default=StateCode.P)
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    sort_order = db.Column(db.Integer, default=0)
    color = db.Column(db.String(20), default="#22c55e")
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    @property
    def state_contribution(self):
        return self.state_code.contribution

    def usable_for(self, school_id, campus_id=None):
        """True when a record in this school/campus may point at this code."""
        if not self.is_active or self.school_id != school_id:
            return False
        return self.campus_id is None or self.campus_id == campus_id

    def to_brief(self):
        return {
            "id": self.id,
            "title": self.title,
            "short_name": self.short_name,
            "state_code": self.state_code.value,
            "color": self.color,
        }

    def to_dict(self):
        data = self.to_brief()
        data.update({
            "school_id": self.school_id,
            "campus_id": self.campus_id,
            "is_default": self.is_default,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "state_contribution": self.state_contribution,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        })
        return data
