from pydantic import BaseModel
from decimal import Decimal
from typing import Dict


class SummaryStats(BaseModel):
    total_employees: int
    total_leaves: int
    total_payroll: Decimal
    avg_salary: Decimal


class CountAndDays(BaseModel):
    count: int = 0
    days: Decimal = Decimal("0")


class CountAndAmount(BaseModel):
    count: int = 0
    amount: Decimal = Decimal("0")


class LeaveReport(BaseModel):
    total_leaves: int
    total_days: Decimal
    by_type: Dict[str, CountAndDays]
    by_department: Dict[str, CountAndDays]
    by_status: Dict[str, int]


class SalaryReport(BaseModel):
    total_amount: Decimal
    by_month: Dict[str, CountAndAmount]
    by_department: Dict[str, CountAndAmount]


class DepartmentReport(BaseModel):
    employee_count: Dict[str, int]
    leave_days: Dict[str, Decimal]
