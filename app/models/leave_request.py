from sqlalchemy import Column, Integer, String, Date, Numeric, Boolean, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class HalfDayType(str, enum.Enum):
    FIRST_HALF = "first_half"
    SECOND_HALF = "second_half"


class Leave(Base):
    __tablename__ = "leaves"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Numeric(6, 2), nullable=False)
    reason = Column(Text, nullable=True)
    is_half_day = Column(Boolean, default=False, nullable=False)
    half_day_type = Column(String(20), nullable=True)
    emergency_contact = Column(String, nullable=True)
    handover_notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=LeaveStatus.PENDING.value, index=True)
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="leaves")
    leave_type = relationship("LeaveType")
