from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class ReportFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    report_frequency = Column(String, default=ReportFrequency.WEEKLY.value, nullable=False)

    # [{"id": <employee id>, "type": "employee" | "manager"}]
    assignees = Column(JSON, default=list, nullable=False)

    # Context handed to the AI scoring service alongside each report
    knowledge_base = Column(Text, nullable=True)

    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    organization = relationship("Organization", back_populates="projects")
    goals = relationship("Goal", back_populates="project", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"

    def employee_assignee_ids(self):
        return {a.get("id") for a in (self.assignees or []) if a.get("type") == "employee"}
