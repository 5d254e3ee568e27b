import enum
import uuid
from datetime import datetime
from studently.extensions import db


def new_id():
    return str(uuid.uuid4())


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class StateCode(enum.Enum):
    """How an attendance code counts toward the day: present, absent or half."""
    P = "P"
    A = "A"
    H = "H"

    @property
    def contribution(self):
        return {"P": 1.0, "H": 0.5, "A": 0.0}[self.value]

    @property
    def legacy_status(self):
        return {"P": "present", "H": "late", "A": "absent"}[self.value]
