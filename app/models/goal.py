from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    # [{"id": str, "name": str, "weight": int}] - weights total 100 at creation
    criteria = Column(JSON, default=list, nullable=False)
    instructions = Column(Text, nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=True)

    manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="goals")
    reports = relationship("Report", back_populates="goal")

    def __repr__(self):
        return f"<Goal {self.id}: {self.name}>"

    @property
    def total_weight(self) -> int:
        return sum(c.get("weight", 0) for c in (self.criteria or []))
