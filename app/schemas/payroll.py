from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List, Optional
from decimal import Decimal
from datetime import date, datetime
from app.models.payroll import PayrollStatus

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class PayrollGenerateRequest(BaseModel):
    employee_id: int
    month: str = Field(..., pattern=MONTH_PATTERN, examples=["2025-03"])


class PayrollGenerateAllRequest(BaseModel):
    month: str = Field(..., pattern=MONTH_PATTERN, examples=["2025-03"])


class PayrollPreviewRequest(BaseModel):
    employee_ids: Optional[List[int]] = None


class PayrollStatusUpdate(BaseModel):
    status: PayrollStatus


class PayrollBulkStatusUpdate(BaseModel):
    payroll_ids: List[int] = Field(..., min_length=1)
    status: PayrollStatus


class PayrollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_name: Optional[str] = None
    department_name: Optional[str] = None
    salary_structure_id: Optional[int] = None
    month: str
    basic_salary: Decimal
    total_allowances: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    status: PayrollStatus
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class PayrollPreviewLine(BaseModel):
    employee_id: int
    employee_name: str
    department_name: Optional[str] = None
    basic_salary: Decimal
    net_salary: Decimal


class PayrollPreviewResponse(BaseModel):
    employee_count: int
    total_basic: Decimal
    total_net: Decimal
    employees: List[PayrollPreviewLine]


class PayrollSummaryResponse(BaseModel):
    total_amount: Decimal
    by_status: Dict[str, int]
    employees_paid: int
