from studently.extensions import db
from .base import new_id


class Period(db.Model):
    """A configured slot in the school day. ``campus_id`` null means school-wide."""
    __tablename__ = 'periods'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False, index=True)
    campus_id = db.Column(db.String(36), db.ForeignKey('campuses.id'), nullable=True, index=True)
    period_name = db.Column(db.String(80), nullable=True)
    period_number = db.Column(db.Integer, nullable=False, default=1)
    sort_order = db.Column(db.Integer, nullable=True)
    start_time = db.Column(db.Time, nullable=True)
    end_time = db.Column(db.Time, nullable=True)
    length_minutes = db.Column(db.Integer, nullable=False, default=45)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    @property
    def display_name(self):
        return self.period_name or f"Period {self.period_number}"

    @property
    def ordering_key(self):
        order = self.sort_order if self.sort_order is not None else self.period_number
        return (order, self.period_number)

    def to_dict(self):
        return {
            "id": self.id,
            "period_name": self.display_name,
            "period_number": self.period_number,
            "sort_order": self.sort_order,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "length_minutes": self.length_minutes,
            "campus_id": self.campus_id,
        }
