from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class EmployeePermissions(BaseModel):
    """Stored, individually grantable flags. Absent means not granted."""
    can_set_global_frequency: Optional[bool] = None
    can_view_organization_wide: Optional[bool] = None
    can_manage_settings: Optional[bool] = None


class Capabilities(BaseModel):
    """
    Resolved capability set of an actor, computed once per request.
    Call sites check these flags, never the stored permissions.
    """
    model_config = ConfigDict(frozen=True)

    can_set_global_frequency: bool = False
    can_view_organization_wide: bool = False
    can_manage_settings: bool = False
    is_account_owner: bool = False


class ScopeFilter(str, Enum):
    DIRECT_REPORTS = "direct-reports"
    ORGANIZATION = "organization"
    REPORTING_CHAIN = "reporting-chain"


class ScopeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    requested_scope: ScopeFilter
    effective_scope: ScopeFilter
    employee_ids: List[int] = Field(default_factory=list)
    report_ids: List[int] = Field(default_factory=list)


class OverrideAuthority(BaseModel):
    employee_id: int
    actor_id: int
    can_override: bool
