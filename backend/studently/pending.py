"""Client-side edit set of the administration grid.

The grid keeps unsaved code and comment changes here until UPDATE sends
them as one ``/reconcile`` request. Every function returns a new value.
"""
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class PendingEdits:
    codes: dict = field(default_factory=dict)      # record_id -> attendance_code_id
    comments: dict = field(default_factory=dict)   # student_id -> comment

    def set_code(self, record_id, code_id):
        codes = dict(self.codes)
        codes[record_id] = code_id
        return replace(self, codes=codes)

    def set_comment(self, student_id, comment):
        comments = dict(self.comments)
        comments[student_id] = comment
        return replace(self, comments=comments)

    def clear(self):
        return PendingEdits()

    def is_dirty(self):
        return bool(self.codes or self.comments)

    def has_student_change(self, row):
        """True if the row's comment or any of its period records is pending."""
        if row.get("student_id") in self.comments:
            return True
        return any(
            cell.get("record_id") in self.codes
            for cell in (row.get("period_records") or {}).values()
        )

    def display_code(self, record):
        """The code id the grid shows for a cell: pending first, then saved."""
        record_id = record.get("record_id")
        if record_id in self.codes:
            return self.codes[record_id]
        return record.get("attendance_code_id")

    def display_comment(self, row):
        student_id = row.get("student_id")
        if student_id in self.comments:
            return self.comments[student_id]
        return row.get("comment") or ""

    def to_request(self, school_id=None, date=None):
        changes = [
            {"record_id": record_id, "attendance_code_id": code_id}
            for record_id, code_id in self.codes.items()
        ]
        comments = []
        for student_id, comment in self.comments.items():
            item = {"student_id": student_id, "comment": comment}
            if school_id:
                item["school_id"] = school_id
            if date:
                item["date"] = date
            comments.append(item)
        return {"changes": changes, "comments": comments}


def reduce(state, action):
    """
    Applies one action. Actions are dicts with a ``type``:
    ``set_code`` (record_id, attendance_code_id), ``set_comment``
    (student_id, comment), ``commit_ok``, ``date_changed`` and
    ``filter_changed``. The last three discard all pending edits.
    """
    kind = action.get("type")
    if kind == "set_code":
        return state.set_code(action["record_id"], action["attendance_code_id"])
    if kind == "set_comment":
        return state.set_comment(action["student_id"], action.get("comment") or "")
    if kind in ("commit_ok", "date_changed", "filter_changed"):
        return state.clear()
    raise ValueError(f"Unknown action: {kind}")
