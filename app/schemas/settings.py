from typing import Dict, List, Optional
from pydantic import BaseModel, Field

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class EntityFrequency(BaseModel):
    selected_days: List[str] = Field(default_factory=list)


class ManagerSettings(BaseModel):
    """
    Organization-wide reporting settings.
    Precedence when resolving a cadence: global < project < employee.
    Entity maps are keyed by the stringified entity id (JSON object keys).
    """
    global_frequency: bool = True
    selected_days: List[str] = Field(default_factory=list)
    employee_frequencies: Dict[str, EntityFrequency] = Field(default_factory=dict)
    project_frequencies: Dict[str, EntityFrequency] = Field(default_factory=dict)
    allow_late_submissions: Optional[bool] = None

    @property
    def late_submissions_allowed(self) -> bool:
        # Unset means allowed
        return self.allow_late_submissions is not False


class FrequencyResolution(BaseModel):
    employee_id: Optional[int] = None
    project_id: Optional[int] = None
    selected_days: List[str] = Field(default_factory=list)
    source: str  # employee | project | global | none


# --- Request bodies ---

class GlobalFrequencyUpdate(BaseModel):
    global_frequency: bool
    selected_days: Optional[List[str]] = None


class SelectedDaysUpdate(BaseModel):
    selected_days: List[str]


class EntitySelectionUpdate(BaseModel):
    ids: List[int]


class LateSubmissionUpdate(BaseModel):
    allow_late_submissions: bool


class MetricsSelectionUpdate(BaseModel):
    metric_ids: List[str]
