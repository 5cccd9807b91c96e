"""
Request-scoped dependencies.

There is no login: the acting employee is named by the X-Employee-ID header
and looked up in the database. Capabilities are resolved once here and
handed to endpoints, which never read Employee.permissions themselves.
"""
import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.exceptions import AccessDeniedError, AuthenticationError, NotFoundError
from app.database import get_db
from app.models.employee import Employee
from app.schemas.permissions import Capabilities
from app.services.ai_scoring import AIScoringClient
from app.services.permission_resolver import resolve_permissions
from app.services.scope_resolver import ScopeResolver

logger = logging.getLogger(__name__)


def get_current_employee(
    x_employee_id: Optional[str] = Header(default=None, alias="X-Employee-ID"),
    db: Session = Depends(get_db),
) -> Employee:
    if not x_employee_id:
        raise AuthenticationError("X-Employee-ID header is required")
    try:
        employee_id = int(x_employee_id)
    except ValueError:
        raise AuthenticationError("X-Employee-ID must be an integer")

    employee = db.get(Employee, employee_id)
    if employee is None:
        logger.warning(f"Unknown acting employee {employee_id}")
        raise AuthenticationError("Unknown employee")
    return employee


def get_capabilities(current: Employee = Depends(get_current_employee)) -> Capabilities:
    return resolve_permissions(current)


def require_manager(current: Employee = Depends(get_current_employee)) -> Employee:
    if not current.is_manager and not current.is_account_owner:
        raise AccessDeniedError("This action is only available to managers.")
    return current


def get_scope_resolver(
    current: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
) -> ScopeResolver:
    """Resolver over every employee of the actor's organization."""
    employees = db.query(Employee).filter(Employee.organization_id == current.organization_id).all()
    return ScopeResolver(employees)


def get_scoring_client() -> AIScoringClient:
    return AIScoringClient()


def get_org_employee(employee_id: int, current: Employee, db: Session) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None or employee.organization_id != current.organization_id:
        raise NotFoundError("Employee", employee_id)
    return employee
