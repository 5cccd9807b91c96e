"""
Goal creation and manager-facing goal listings.

Criterion weights must total exactly 100 when a goal is created. Nothing
re-checks that afterwards, so the evaluation math never assumes it.
"""
import uuid
from typing import List, Optional

from app.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from app.models.employee import Employee
from app.models.goal import Goal
from app.models.project import Project
from app.schemas.goal import CriterionIn, GoalCreate
from app.services.base import BaseService
from app.services.scope_resolver import ScopeResolver

REQUIRED_TOTAL_WEIGHT = 100
MIN_INSTRUCTIONS_LENGTH = 10


def validate_criteria(criteria: List[CriterionIn]) -> None:
    if not criteria:
        raise ValidationError("A goal needs at least one criterion.", field="criteria")

    names = set()
    for criterion in criteria:
        name = criterion.name.strip()
        if not name:
            raise ValidationError("Criterion names cannot be empty.", field="criteria")
        if name in names:
            raise ValidationError(f"Duplicate criterion '{name}'.", field="criteria")
        names.add(name)
        if not 0 < criterion.weight <= 100:
            raise ValidationError(f"Weight of '{name}' must be between 1 and 100.", field="criteria")

    total = sum(c.weight for c in criteria)
    if total != REQUIRED_TOTAL_WEIGHT:
        raise ValidationError(
            f"Total weight must be {REQUIRED_TOTAL_WEIGHT}% (currently {total}%).",
            field="criteria",
        )


def can_edit_goal(goal: Goal, manager_id: Optional[int]) -> bool:
    """Only the goal's creator may edit it."""
    return bool(manager_id) and goal.created_by == manager_id


class GoalService(BaseService):

    def create_goal(self, data: GoalCreate, actor: Employee) -> Goal:
        if not actor.is_manager and not actor.is_account_owner:
            raise AccessDeniedError("Only managers can create goals.")

        project = self.db.get(Project, data.project_id)
        if project is None or project.organization_id != actor.organization_id:
            raise NotFoundError("Project", data.project_id)

        name = data.name.strip()
        if not name:
            raise ValidationError("Goal name is required.", field="name")
        instructions = data.instructions.strip()
        if len(instructions) < MIN_INSTRUCTIONS_LENGTH:
            raise ValidationError(
                f"Instructions must be at least {MIN_INSTRUCTIONS_LENGTH} characters.",
                field="instructions",
            )
        validate_criteria(data.criteria)

        goal = Goal(
            project_id=project.id,
            name=name,
            criteria=[
                {"id": f"crit-{uuid.uuid4().hex[:12]}", "name": c.name.strip(), "weight": c.weight}
                for c in data.criteria
            ],
            instructions=instructions,
            deadline=data.deadline,
            manager_id=actor.id,
            created_by=actor.id,
        )
        self.db.add(goal)
        self.commit()
        self.db.refresh(goal)
        self.log_info(f"Goal {goal.id} created in project {project.id}", goal_id=goal.id, actor_id=actor.id)
        return goal

    def get_goal(self, goal_id: int) -> Goal:
        goal = self.db.get(Goal, goal_id)
        if goal is None or goal.project.organization_id != self.org_id:
            raise NotFoundError("Goal", goal_id)
        return goal

    def get_goals(self, goal_ids: List[int]) -> List[Goal]:
        """Goals in the order requested."""
        return [self.get_goal(goal_id) for goal_id in goal_ids]

    def list_for_manager(self, resolver: ScopeResolver, manager_id: Optional[int]) -> List[Goal]:
        projects = self.db.query(Project).filter(Project.organization_id == self.org_id).all()
        goals = (
            self.db.query(Goal)
            .join(Project)
            .filter(Project.organization_id == self.org_id)
            .order_by(Goal.id)
            .all()
        )
        return resolver.visible_goals(goals, projects, manager_id)

    def list_for_employee(self, employee: Employee) -> List[Goal]:
        """Goals of the projects the employee is assigned to."""
        projects = self.db.query(Project).filter(Project.organization_id == self.org_id).all()
        project_ids = [p.id for p in projects if employee.id in p.employee_assignee_ids()]
        if not project_ids:
            return []
        return self.db.query(Goal).filter(Goal.project_id.in_(project_ids)).order_by(Goal.id).all()
