from .daily_attendance import DailyAttendanceService
from .attendance_codes import AttendanceCodeService
from .attendance_grid import AttendanceGridService
from .attendance_override import AttendanceOverrideService, ReconciliationResult
from .attendance_reports import AttendanceReportService
from .attendance_utilities import AttendanceUtilityService
