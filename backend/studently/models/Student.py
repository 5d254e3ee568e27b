from studently.extensions import db
from .base import new_id, TimestampMixin


class Student(db.Model, TimestampMixin):
    __tablename__ = 'students'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    full_name = db.Column(db.String(100), nullable=False)
    admission_number = db.Column(db.String(40), nullable=True)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False, index=True)
    campus_id = db.Column(db.String(36), db.ForeignKey('campuses.id'), nullable=True, index=True)
    section_id = db.Column(db.String(36), db.ForeignKey('sections.id'), nullable=True, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    section = db.relationship('Section', back_populates='students')
    attendance_records = db.relationship('AttendanceRecord', back_populates='student', lazy=True)

    @property
    def section_name(self):
        return self.section.name if self.section else None

    @property
    def grade_name(self):
        if self.section and self.section.grade:
            return self.section.grade.name
        return None

    @property
    def grade_id(self):
        return self.section.grade_id if self.section else None

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "admission_number": self.admission_number,
            "school_id": self.school_id,
            "campus_id": self.campus_id,
            "section_id": self.section_id,
            "section_name": self.section_name,
            "grade_name": self.grade_name,
            "is_active": self.is_active,
        }
