from sqlalchemy import Column, Integer, Float, Text, DateTime, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class Report(Base):
    """
    One evaluated report against one goal.

    Created once from an accepted evaluation. Afterwards only the two
    manager_override_* / manager_overall_score fields change, always together.
    """
    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint(
            "(manager_overall_score IS NULL) = (manager_override_reasoning IS NULL)",
            name="ck_report_override_pair",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)

    report_text = Column(Text, nullable=False)
    submission_date = Column(DateTime(timezone=True), nullable=False, index=True)

    # [{"criterion_name": str, "score": float}] as returned by the AI service
    criterion_scores = Column(JSON, default=list, nullable=False)
    evaluation_score = Column(Float, nullable=False)
    evaluation_reasoning = Column(Text, nullable=True)

    manager_overall_score = Column(Float, nullable=True)
    manager_override_reasoning = Column(Text, nullable=True)

    employee = relationship("Employee", back_populates="reports")
    goal = relationship("Goal", back_populates="reports")

    def __repr__(self):
        return f"<Report {self.id} goal={self.goal_id} employee={self.employee_id}>"

    @property
    def has_override(self) -> bool:
        return self.manager_overall_score is not None
