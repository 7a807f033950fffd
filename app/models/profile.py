"""
Profile Model.
A profile is the login identity behind the dashboard; its role decides
which screens and operations are available.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class ProfileRole(str, enum.Enum):
    """
    Dashboard roles.

    - ADMIN: manages departments, employees, salaries, payroll and approvals
    - EMPLOYEE: self-service (own leaves, payslips, profile edit requests)
    """
    ADMIN = "admin"
    EMPLOYEE = "employee"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=True)

    role = Column(Enum(ProfileRole), default=ProfileRole.EMPLOYEE, nullable=False)

    # Set when this profile manages a department (always the department id, never its name)
    department_id = Column(Integer, ForeignKey("departments.id", use_alter=True, name="fk_profile_department_id"), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee", back_populates="profile", uselist=False)
    managed_department = relationship(
        "Department", foreign_keys="Department.manager_id", back_populates="manager", uselist=False
    )

    def __repr__(self):
        return f"<Profile {self.email} ({self.role.value})>"

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN
