from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), unique=True, nullable=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    dob = Column(Date, nullable=True)
    phone = Column(String, nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    profile = relationship("Profile", back_populates="employee")
    department = relationship("Department", back_populates="employees")
    salary_structures = relationship(
        "SalaryStructure", back_populates="employee", cascade="all, delete-orphan",
        order_by="SalaryStructure.effective_from.desc()"
    )
    payrolls = relationship("Payroll", back_populates="employee", cascade="all, delete-orphan")
    leaves = relationship("Leave", back_populates="employee", cascade="all, delete-orphan")
    leave_balances = relationship("LeaveBalance", back_populates="employee", cascade="all, delete-orphan")
    profile_edit_requests = relationship(
        "ProfileEditRequest", foreign_keys="ProfileEditRequest.employee_id",
        back_populates="employee", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Employee {self.id}: {self.name}>"
