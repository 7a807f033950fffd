from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from app.models.leave_request import HalfDayType, LeaveStatus


class LeaveTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    max_days: Optional[int] = Field(None, ge=0)
    is_paid: bool = True
    requires_approval: bool = True
    accrual_rate: Optional[Decimal] = Field(None, ge=0)
    min_service_days: Optional[int] = Field(None, ge=0)


class LeaveTypeCreate(LeaveTypeBase):
    pass


class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    max_days: Optional[int] = Field(None, ge=0)
    is_paid: Optional[bool] = None
    requires_approval: Optional[bool] = None
    accrual_rate: Optional[Decimal] = Field(None, ge=0)
    min_service_days: Optional[int] = Field(None, ge=0)


class LeaveTypeResponse(LeaveTypeBase):
    model_config = ConfigDict(from_attributes=True)

    id: int


class LeaveRequestCreate(BaseModel):
    leave_type_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None
    is_half_day: bool = False
    half_day_type: Optional[HalfDayType] = None
    emergency_contact: Optional[str] = None
    handover_notes: Optional[str] = None


class LeaveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_name: Optional[str] = None
    leave_type_id: int
    leave_type_name: Optional[str] = None
    start_date: date
    end_date: date
    total_days: Decimal
    reason: Optional[str] = None
    is_half_day: bool
    half_day_type: Optional[HalfDayType] = None
    status: LeaveStatus
    rejection_reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class LeaveDecisionRequest(BaseModel):
    decision: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = None


class LeaveBulkDecisionRequest(LeaveDecisionRequest):
    leave_ids: List[int] = Field(..., min_length=1)


class LeaveBalanceCreate(BaseModel):
    employee_id: int
    leave_type_id: int
    year: int = Field(..., ge=2000, le=2100)
    total_allocated: Optional[Decimal] = Field(None, ge=0)


class LeaveBalanceUpdate(BaseModel):
    total_allocated: Optional[Decimal] = Field(None, ge=0)
    used: Optional[Decimal] = Field(None, ge=0)


class LeaveBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    leave_type_id: int
    leave_type_name: Optional[str] = None
    year: int
    total_allocated: Decimal
    used: Decimal
    remaining: Decimal
