"""
Organization settings endpoints.

Every write needs can_manage_settings; toggling or editing the global
cadence additionally needs can_set_global_frequency (checked inside the
resolver mutations).
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.metrics_catalog import STANDARD_METRICS
from app.database import get_db
from app.models.employee import Employee
from app.models.organization import Organization
from app.routers.deps import get_capabilities, get_current_employee
from app.schemas.permissions import Capabilities
from app.schemas.settings import (
    EntitySelectionUpdate,
    FrequencyResolution,
    GlobalFrequencyUpdate,
    LateSubmissionUpdate,
    ManagerSettings,
    MetricsSelectionUpdate,
    SelectedDaysUpdate,
)
from app.services import frequency_resolver
from app.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=ManagerSettings)
def get_settings(current: Employee = Depends(get_current_employee), db: Session = Depends(get_db)):
    return SettingsService(db, current.organization_id).load()


@router.get("/frequency", response_model=FrequencyResolution)
def resolve_frequency(
    employee_id: Optional[int] = None,
    project_id: Optional[int] = None,
    current: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """Effective reporting days: employee entry, then project entry, then global days."""
    manager_settings = SettingsService(db, current.organization_id).load()
    return frequency_resolver.resolve_frequency(manager_settings, employee_id, project_id)


@router.put("/frequency/global", response_model=ManagerSettings)
def update_global_frequency(
    payload: GlobalFrequencyUpdate,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    def mutate(s: ManagerSettings) -> ManagerSettings:
        s = frequency_resolver.set_global_frequency(s, capabilities, payload.global_frequency)
        if payload.selected_days is not None:
            s = frequency_resolver.set_global_days(s, capabilities, payload.selected_days)
        return s

    return SettingsService(db, current.organization_id).update(current, capabilities, "GLOBAL_FREQUENCY_UPDATED", mutate)


@router.put("/frequency/employees", response_model=ManagerSettings)
def select_employees(
    payload: EntitySelectionUpdate,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    return SettingsService(db, current.organization_id).update(
        current, capabilities, "EMPLOYEE_FREQUENCY_SELECTION_UPDATED",
        lambda s: frequency_resolver.sync_employee_selection(s, payload.ids),
    )


@router.put("/frequency/projects", response_model=ManagerSettings)
def select_projects(
    payload: EntitySelectionUpdate,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    return SettingsService(db, current.organization_id).update(
        current, capabilities, "PROJECT_FREQUENCY_SELECTION_UPDATED",
        lambda s: frequency_resolver.sync_project_selection(s, payload.ids),
    )


@router.put("/frequency/employees/{employee_id}", response_model=ManagerSettings)
def set_employee_days(
    employee_id: int,
    payload: SelectedDaysUpdate,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    return SettingsService(db, current.organization_id).update(
        current, capabilities, "EMPLOYEE_FREQUENCY_UPDATED",
        lambda s: frequency_resolver.set_employee_days(s, employee_id, payload.selected_days),
    )


@router.put("/frequency/projects/{project_id}", response_model=ManagerSettings)
def set_project_days(
    project_id: int,
    payload: SelectedDaysUpdate,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    return SettingsService(db, current.organization_id).update(
        current, capabilities, "PROJECT_FREQUENCY_UPDATED",
        lambda s: frequency_resolver.set_project_days(s, project_id, payload.selected_days),
    )


@router.put("/late-submissions", response_model=ManagerSettings)
def update_late_submissions(
    payload: LateSubmissionUpdate,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    return SettingsService(db, current.organization_id).update(
        current, capabilities, "LATE_SUBMISSION_POLICY_UPDATED",
        lambda s: frequency_resolver.set_allow_late_submissions(s, capabilities, payload.allow_late_submissions),
    )


@router.get("/metrics/catalog", response_model=List[Dict[str, str]])
def metrics_catalog():
    return STANDARD_METRICS


@router.get("/metrics", response_model=List[str])
def get_selected_metrics(current: Employee = Depends(get_current_employee), db: Session = Depends(get_db)):
    organization = db.get(Organization, current.organization_id)
    return list(organization.selected_metrics or []) if organization else []


@router.put("/metrics", response_model=List[str])
def update_selected_metrics(
    payload: MetricsSelectionUpdate,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    return SettingsService(db, current.organization_id).set_selected_metrics(current, capabilities, payload.metric_ids)
