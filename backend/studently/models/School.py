from studently.extensions import db
from .base import new_id


class School(db.Model):
    __tablename__ = 'schools'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(120), nullable=True)

    campuses = db.relationship('Campus', backref='school', lazy=True)
    students = db.relationship('Student', backref='school', lazy=True)
    users = db.relationship('User', back_populates='school', lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
        }


class Campus(db.Model):
    __tablename__ = 'campuses'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)


class Grade(db.Model):
    __tablename__ = 'grades'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False, index=True)
    name = db.Column(db.String(80), nullable=False)
    sort_order = db.Column(db.Integer, default=0)

    sections = db.relationship('Section', back_populates='grade', lazy=True)


class Section(db.Model):
    __tablename__ = 'sections'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    school_id = db.Column(db.String(36), db.ForeignKey('schools.id'), nullable=False, index=True)
    grade_id = db.Column(db.String(36), db.ForeignKey('grades.id'), nullable=True, index=True)
    name = db.Column(db.String(80), nullable=False)

    grade = db.relationship('Grade', back_populates='sections')
    students = db.relationship('Student', back_populates='section', lazy=True)
