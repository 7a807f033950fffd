from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal
from datetime import date, datetime


class SalaryStructureFields(BaseModel):
    """Pay components accepted when assigning a salary structure."""
    base_salary: Decimal = Field(..., gt=0)
    housing_allowance: Decimal = Field(Decimal("0"), ge=0)
    transport_allowance: Decimal = Field(Decimal("0"), ge=0)
    medical_allowance: Decimal = Field(Decimal("0"), ge=0)
    other_allowance: Decimal = Field(Decimal("0"), ge=0)
    tax_percentage: Decimal = Field(Decimal("0"), ge=0, le=30)
    provident_fund_percentage: Decimal = Field(Decimal("0"), ge=0, le=20)


class SalaryStructureCreate(SalaryStructureFields):
    effective_from: date


class SalaryBreakdownResponse(BaseModel):
    gross: Decimal
    total_allowances: Decimal
    tax: Decimal
    provident_fund: Decimal
    total_deductions: Decimal
    net: Decimal


class SalaryStructureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    base_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    medical_allowance: Decimal
    other_allowance: Decimal
    tax_percentage: Decimal
    provident_fund_percentage: Decimal
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    created_at: Optional[datetime] = None
    breakdown: Optional[SalaryBreakdownResponse] = None
