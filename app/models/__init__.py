# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    organization, employee, project, goal, report, manager_settings, audit_log
)

# Explicit class exports for cleaner imports
from .organization import Organization
from .employee import Employee, EmployeeRole
from .project import Project, ReportFrequency
from .goal import Goal
from .report import Report
from .manager_settings import ManagerSettingsRecord
from .audit_log import AuditLog

__all__ = [
    "Organization",
    "Employee",
    "EmployeeRole",
    "Project",
    "ReportFrequency",
    "Goal",
    "Report",
    "ManagerSettingsRecord",
    "AuditLog",
]
