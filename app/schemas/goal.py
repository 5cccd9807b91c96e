from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class CriterionIn(BaseModel):
    name: str
    weight: int


class Criterion(BaseModel):
    id: str
    name: str
    weight: int


class GoalCreate(BaseModel):
    project_id: int
    name: str
    criteria: List[CriterionIn]
    instructions: str
    deadline: Optional[datetime] = None


class GoalResponse(BaseModel):
    id: int
    project_id: int
    name: str
    criteria: List[Criterion]
    instructions: str
    deadline: Optional[datetime] = None
    manager_id: Optional[int] = None
    created_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionStatus(BaseModel):
    goal_id: int
    goal_name: str
    deadline: Optional[datetime] = None
    deadline_passed: bool
    late_submissions_allowed: bool
    blocked: bool = Field(description="True when a report can no longer be submitted against this goal")
