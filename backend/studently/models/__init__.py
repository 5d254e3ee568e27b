from .User import User, Role, TokenBlocklist, ADMIN_ROLES, TEACHER_ROLES
from .School import School, Campus, Grade, Section
from .Student import Student
from .Period import Period
from .AttendanceCode import AttendanceCode
from .AttendanceRecord import AttendanceRecord, AttendanceDaily, AttendanceCompleted
from .AuditLog import AuditLog
from .base import StateCode, TimestampMixin, new_id
