from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    # Department manager (a profile with the employee role)
    manager_id = Column(Integer, ForeignKey("profiles.id", use_alter=True, name="fk_department_manager_id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    manager = relationship("Profile", foreign_keys=[manager_id], back_populates="managed_department")
    employees = relationship("Employee", back_populates="department")

    def __repr__(self):
        return f"<Department {self.id}: {self.name}>"
