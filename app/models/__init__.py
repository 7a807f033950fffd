# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    profile, department, employee,
    salary_structure, payroll,
    leave_type, leave_balance, leave_request,
    profile_edit_request,
)

# Explicit class exports for cleaner imports
from .profile import Profile, ProfileRole
from .department import Department
from .employee import Employee
from .salary_structure import SalaryStructure
from .payroll import Payroll, PayrollStatus
from .leave_type import LeaveType
from .leave_balance import LeaveBalance
from .leave_request import Leave, LeaveStatus, HalfDayType
from .profile_edit_request import ProfileEditRequest, EditRequestStatus

__all__ = [
    "Profile",
    "ProfileRole",
    "Department",
    "Employee",
    "SalaryStructure",
    "Payroll",
    "PayrollStatus",
    "LeaveType",
    "LeaveBalance",
    "Leave",
    "LeaveStatus",
    "HalfDayType",
    "ProfileEditRequest",
    "EditRequestStatus",
]
