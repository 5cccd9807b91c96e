"""
Employee Model.

The manager graph is self-referential through manager_id. It is expected to
be a forest, but nothing here prevents a cycle; traversals in
app.services.scope_resolver guard against one.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class EmployeeRole(str, enum.Enum):
    """
    - MANAGER: reads and evaluates reports of their scope
    - EMPLOYEE: submits reports
    """
    MANAGER = "manager"
    EMPLOYEE = "employee"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=True)

    role = Column(Enum(EmployeeRole), default=EmployeeRole.EMPLOYEE, nullable=False)
    manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)

    # Account owner always resolves to full capabilities, whatever `permissions` says
    is_account_owner = Column(Boolean, default=False, nullable=False)
    # {"can_set_global_frequency": bool, "can_view_organization_wide": bool, "can_manage_settings": bool}
    permissions = Column(JSON, nullable=True)

    join_date = Column(DateTime(timezone=True), server_default=func.now())

    organization = relationship("Organization", back_populates="employees")
    manager = relationship("Employee", remote_side=[id], back_populates="direct_reports")
    direct_reports = relationship("Employee", back_populates="manager")
    reports = relationship("Report", back_populates="employee", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Employee {self.id}: {self.email} ({self.role.value})>"

    @property
    def is_manager(self) -> bool:
        return self.role == EmployeeRole.MANAGER
