from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.employee import Employee
from app.models.report import Report
from app.routers.deps import get_capabilities, get_current_employee, get_org_employee, get_scope_resolver
from app.schemas.permissions import Capabilities, OverrideAuthority, ScopeFilter, ScopeResult
from app.services.scope_resolver import ScopeResolver

router = APIRouter(tags=["Access Scope"])


@router.get("/permissions/me", response_model=Capabilities)
def my_permissions(capabilities: Capabilities = Depends(get_capabilities)):
    return capabilities


@router.get("/scope", response_model=ScopeResult)
def my_scope(
    scope: ScopeFilter = Query(ScopeFilter.DIRECT_REPORTS),
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    db: Session = Depends(get_db),
):
    """
    Employees and reports visible to the caller.
    Organization scope without permission quietly narrows to direct-reports;
    compare requested_scope with effective_scope to tell.
    """
    reports = (
        db.query(Report)
        .join(Employee, Report.employee_id == Employee.id)
        .filter(Employee.organization_id == current.organization_id)
        .all()
    )
    return resolver.resolve_scope(current.id, scope, reports, capabilities)


@router.get("/employees/{employee_id}/can-override", response_model=OverrideAuthority)
def can_override(
    employee_id: int,
    current: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    employee = get_org_employee(employee_id, current, db)
    return OverrideAuthority(
        employee_id=employee.id,
        actor_id=current.id,
        can_override=ScopeResolver.can_override(employee, current.id),
    )
