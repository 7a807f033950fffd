"""
Salary Structure Model.
Versioned pay components per employee. Exactly one structure may be active
for an employee at any time; superseded rows are kept as history.
"""
from sqlalchemy import Column, Integer, Numeric, Date, Boolean, DateTime, ForeignKey, Index, CheckConstraint, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class SalaryStructure(Base):
    __tablename__ = "salary_structures"
    __table_args__ = (
        # Storage-level guard: a second active row for the same employee is rejected
        Index(
            "uq_salary_structures_one_active",
            "employee_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        CheckConstraint("base_salary >= 0", name="ck_salary_base_non_negative"),
        CheckConstraint("tax_percentage >= 0 AND tax_percentage <= 30", name="ck_salary_tax_range"),
        CheckConstraint(
            "provident_fund_percentage >= 0 AND provident_fund_percentage <= 20",
            name="ck_salary_pf_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)

    base_salary = Column(Numeric(12, 2), nullable=False)
    housing_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    transport_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    medical_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    other_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    tax_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    provident_fund_percentage = Column(Numeric(5, 2), nullable=False, default=0)

    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="salary_structures")
    payrolls = relationship("Payroll", back_populates="salary_structure")

    def __repr__(self):
        state = "active" if self.is_active else f"until {self.effective_to}"
        return f"<SalaryStructure employee={self.employee_id} from {self.effective_from} ({state})>"
