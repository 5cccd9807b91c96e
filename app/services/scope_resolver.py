"""
Visibility scope of a manager over the organization.

Default rule ("direct-reports" scope) is two levels deep: direct reports plus
the direct reports of any direct report who manages someone. It is expressed
as a depth-bounded breadth-first walk of the manager graph so the same
traversal also serves the transitive "reporting-chain" scope. The walk never
visits a node twice, so a manager loop in the data cannot hang it, and the
actor is never part of their own scope.
"""
import logging
from collections import defaultdict, deque
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from app.schemas.permissions import Capabilities, ScopeFilter, ScopeResult
from app.services.permission_resolver import resolve_permissions

logger = logging.getLogger(__name__)

# Direct reports + one skip level
DEFAULT_SCOPE_DEPTH = 2


class ScopeResolver:
    def __init__(self, employees: Iterable[Any]):
        self._employees: Dict[int, Any] = {}
        self._reports_by_manager: Dict[int, List[int]] = defaultdict(list)
        for employee in employees:
            self._employees[employee.id] = employee
            if employee.manager_id is not None:
                self._reports_by_manager[employee.manager_id].append(employee.id)
        for ids in self._reports_by_manager.values():
            ids.sort()

    @property
    def employee_ids(self) -> Set[int]:
        return set(self._employees)

    def get(self, employee_id: Optional[int]) -> Optional[Any]:
        if employee_id is None:
            return None
        return self._employees.get(employee_id)

    def is_manager(self, employee_id: int) -> bool:
        """Someone is a manager when at least one employee points at them."""
        return bool(self._reports_by_manager.get(employee_id))

    # ------------------------------------------------------------------
    # Traversal primitives
    # ------------------------------------------------------------------

    def direct_reports(self, actor_id: Optional[int]) -> Set[int]:
        if not actor_id:
            return set()
        return {eid for eid in self._reports_by_manager.get(actor_id, []) if eid != actor_id}

    def all_reports(self, actor_id: Optional[int], max_depth: Optional[int] = None) -> Set[int]:
        """
        Transitive closure below `actor_id`, at most `max_depth` hops deep
        (unbounded when None). Cycle-safe.
        """
        if not actor_id:
            return set()
        seen: Set[int] = {actor_id}
        found: Set[int] = set()
        queue = deque([(actor_id, 0)])
        while queue:
            manager_id, depth = queue.popleft()
            if max_depth is not None and depth >= max_depth:
                continue
            for report_id in self._reports_by_manager.get(manager_id, []):
                if report_id in seen:
                    if report_id == actor_id:
                        logger.warning(f"Manager cycle detected through employee {actor_id}")
                    continue
                seen.add(report_id)
                found.add(report_id)
                queue.append((report_id, depth + 1))
        return found

    def scoped_employee_ids(self, actor_id: Optional[int]) -> Set[int]:
        """Direct reports plus skip-level reports."""
        return self.all_reports(actor_id, max_depth=DEFAULT_SCOPE_DEPTH)

    def is_in_scope(self, employee: Any, actor_id: Optional[int]) -> bool:
        """
        Single-row form of scoped_employee_ids, for per-row checks in listings.
        A falsy actor id means no manager filter is applied.
        """
        if not actor_id:
            return True
        if employee is None or employee.id == actor_id:
            return False
        if employee.manager_id == actor_id:
            return True
        manager = self.get(employee.manager_id)
        return manager is not None and manager.manager_id == actor_id

    # ------------------------------------------------------------------
    # Authority
    # ------------------------------------------------------------------

    @staticmethod
    def can_override(employee: Any, actor_id: Optional[int]) -> bool:
        """Override writes belong to the exact direct manager only, never skip-level or org-wide viewers."""
        if employee is None or not actor_id:
            return False
        return employee.manager_id == actor_id

    # ------------------------------------------------------------------
    # Scope resolution
    # ------------------------------------------------------------------

    def resolve_employee_ids(
        self,
        actor_id: int,
        requested_scope: ScopeFilter = ScopeFilter.DIRECT_REPORTS,
        capabilities: Optional[Capabilities] = None,
    ) -> Tuple[Set[int], ScopeFilter]:
        if capabilities is None:
            capabilities = resolve_permissions(self.get(actor_id))

        requested_scope = ScopeFilter(requested_scope)
        if requested_scope == ScopeFilter.ORGANIZATION:
            if capabilities.can_view_organization_wide:
                return set(self._employees), ScopeFilter.ORGANIZATION
            # Narrower visibility instead of an error
            logger.warning(
                f"Employee {actor_id} requested organization scope without permission; "
                "falling back to direct-reports scope"
            )
            return self.scoped_employee_ids(actor_id), ScopeFilter.DIRECT_REPORTS
        if requested_scope == ScopeFilter.REPORTING_CHAIN:
            return self.all_reports(actor_id), ScopeFilter.REPORTING_CHAIN
        return self.scoped_employee_ids(actor_id), ScopeFilter.DIRECT_REPORTS

    def resolve_scope(
        self,
        actor_id: int,
        requested_scope: ScopeFilter = ScopeFilter.DIRECT_REPORTS,
        reports: Iterable[Any] = (),
        capabilities: Optional[Capabilities] = None,
    ) -> ScopeResult:
        """
        Visible employees and reports for `actor_id`.
        A report is visible when its author is visible; the actor's own reports always are.
        """
        employee_ids, effective = self.resolve_employee_ids(actor_id, requested_scope, capabilities)
        report_ids = sorted(
            r.id for r in reports
            if r.employee_id in employee_ids or r.employee_id == actor_id
        )
        return ScopeResult(
            requested_scope=ScopeFilter(requested_scope),
            effective_scope=effective,
            employee_ids=sorted(employee_ids),
            report_ids=report_ids,
        )

    def filter_reports(self, reports: Iterable[Any], scope: ScopeResult, actor_id: int) -> List[Any]:
        visible = set(scope.employee_ids)
        return [r for r in reports if r.employee_id in visible or r.employee_id == actor_id]

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def visible_goals(self, goals: Iterable[Any], projects: Iterable[Any], manager_id: Optional[int]) -> List[Any]:
        """
        Goals a manager created, plus goals of any project that has one of
        the manager's direct reports as an employee assignee.
        """
        goals = list(goals)
        if not manager_id:
            return goals

        managed = self.direct_reports(manager_id)
        relevant_projects = {
            p.id for p in projects
            if any(
                a.get("type") == "employee" and a.get("id") in managed
                for a in (p.assignees or [])
            )
        }
        return [
            g for g in goals
            if g.created_by == manager_id
            or g.manager_id == manager_id
            or g.project_id in relevant_projects
        ]


def filter_goals_for_manager(goals: Iterable[Any], projects: Iterable[Any], employees: Iterable[Any], manager_id: Optional[int]) -> List[Any]:
    return ScopeResolver(employees).visible_goals(goals, projects, manager_id)
