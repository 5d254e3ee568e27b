from datetime import datetime
from studently.extensions import db
from .base import new_id, TimestampMixin


class AttendanceRecord(db.Model):
    """One student's outcome for one period on one date.

    Rows are materialized by the scheduler and afterwards only updated
    (marking, overrides). The duplicate clean-up utility is the one place
    that deletes them.
    """
    __tablename__ = 'attendance_records'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False, index=True)
    campus_id = db.Column(db.String(36), db.ForeignKey('campuses.id'), nullable=True, index=True)
    student_id = db.Column(db.String(36), db.ForeignKey('students.id'), nullable=False, index=True)
    period_id = db.Column(db.String(36), db.ForeignKey('periods.id'), nullable=False)
    attendance_date = db.Column(db.Date, nullable=False, index=True)
    attendance_code_id = db.Column(db.String(36), db.ForeignKey('attendance_codes.id'), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="present")  # present / late / absent
    admin_override = db.Column(db.Boolean, default=False, nullable=False)
    override_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    override_reason = db.Column(db.String(255), nullable=True)
    remarks = db.Column(db.String(255), nullable=True)
    marked_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    marked_at = db.Column(db.DateTime, nullable=True)
    auto_generated = db.Column(db.Boolean, default=True, nullable=False)

    student = db.relationship('Student', back_populates='attendance_records')
    period = db.relationship('Period')
    attendance_code = db.relationship('AttendanceCode')

    __table_args__ = (
        db.Index('ix_attendance_student_period_date', 'student_id', 'period_id', 'attendance_date'),
    )

    def apply_code(self, code, user_id=None, override=False, reason=None):
        self.attendance_code = code
        self.attendance_code_id = code.id
        self.status = code.state_code.legacy_status
        self.marked_at = datetime.utcnow()
        self.auto_generated = False
        if override:
            self.admin_override = True
            self.override_by = user_id
            self.override_reason = reason
        else:
            self.marked_by = user_id

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "period_id": self.period_id,
            "period": self.period.to_dict() if self.period else None,
            "attendance_date": self.attendance_date.isoformat(),
            "attendance_code_id": self.attendance_code_id,
            "attendance_code": self.attendance_code.to_brief() if self.attendance_code else None,
            "status": self.status,
            "admin_override": self.admin_override,
            "override_by": self.override_by,
            "override_reason": self.override_reason,
            "remarks": self.remarks,
            "marked_by": self.marked_by,
            "marked_at": self.marked_at.isoformat() if self.marked_at else None,
        }


class AttendanceDaily(db.Model, TimestampMixin):
    """Day-level aggregate per student: state value, minutes and comment."""
    __tablename__ = 'attendance_daily'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False)
    campus_id = db.Column(db.String(36), db.ForeignKey('campuses.id'), nullable=True)
    student_id = db.Column(db.String(36), db.ForeignKey('students.id'), nullable=False)
    attendance_date = db.Column(db.Date, nullable=False)
    state_value = db.Column(db.Float, nullable=True)
    total_minutes = db.Column(db.Integer, default=0, nullable=False)
    minutes_present = db.Column(db.Float, default=0, nullable=False)
    comment = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('school_id', 'student_id', 'attendance_date', name='uq_daily_school_student_date'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "school_id": self.school_id,
            "student_id": self.student_id,
            "attendance_date": self.attendance_date.isoformat(),
            "state_value": self.state_value,
            "total_minutes": self.total_minutes,
            "minutes_present": self.minutes_present,
            "comment": self.comment,
        }


class AttendanceCompleted(db.Model):
    """A teacher's mark that attendance was taken for a period on a date."""
    __tablename__ = 'attendance_completed'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False)
    campus_id = db.Column(db.String(36), db.ForeignKey('campuses.id'), nullable=True)
    staff_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    school_date = db.Column(db.Date, nullable=False)
    period_id = db.Column(db.String(36), db.ForeignKey('periods.id'), nullable=False)
    table_name = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('staff_id', 'school_date', 'period_id', 'table_name', name='uq_attendance_completed'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "school_id": self.school_id,
            "campus_id": self.campus_id,
            "staff_id": self.staff_id,
            "school_date": self.school_date.isoformat(),
            "period_id": self.period_id,
            "table_name": self.table_name,
        }
