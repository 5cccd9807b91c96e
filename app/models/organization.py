from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Organization(Base):
    """Tenant boundary. Every employee, project and settings row belongs to exactly one."""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    plan_tier = Column(String, default="free", nullable=False)  # free, business, enterprise

    # Ids from the standard metrics catalogue (app.core.metrics_catalog)
    selected_metrics = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employees = relationship("Employee", back_populates="organization", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="organization", cascade="all, delete-orphan")
    manager_settings = relationship(
        "ManagerSettingsRecord", back_populates="organization", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Organization {self.id}: {self.name}>"
