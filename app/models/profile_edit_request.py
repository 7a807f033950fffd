from sqlalchemy import Column, Integer, String, Date, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum


class EditRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProfileEditRequest(Base):
    __tablename__ = "profile_edit_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    requested_name = Column(String, nullable=True)
    requested_dob = Column(Date, nullable=True)
    requested_department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    status = Column(String(20), nullable=False, default=EditRequestStatus.PENDING.value, index=True)
    decided_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", foreign_keys=[employee_id], back_populates="profile_edit_requests")
    requested_department = relationship("Department", foreign_keys=[requested_department_id])
