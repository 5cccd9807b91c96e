from typing import Callable, List

from app.core.exceptions import NotFoundError
from app.core.metrics_catalog import validate_metric_ids
from app.models.employee import Employee
from app.models.manager_settings import ManagerSettingsRecord
from app.models.organization import Organization
from app.schemas.permissions import Capabilities
from app.schemas.settings import ManagerSettings
from app.services.audit import AuditService
from app.services.base import BaseService
from app.services.permission_resolver import require_capability


class SettingsService(BaseService):
    """
    Reads and writes the organization's ManagerSettings.
    Every change goes through a pure FrequencyResolver mutation and is audited
    in the same transaction.
    """

    def _record(self) -> ManagerSettingsRecord:
        return (
            self.db.query(ManagerSettingsRecord)
            .filter(ManagerSettingsRecord.organization_id == self.org_id)
            .first()
        )

    def load(self) -> ManagerSettings:
        record = self._record()
        if record is None:
            return ManagerSettings()
        return ManagerSettings.model_validate(record.data or {})

    def save(self, updated: ManagerSettings, actor: Employee, action: str) -> ManagerSettings:
        record = self._record()
        before = ManagerSettings.model_validate(record.data or {}) if record is not None else ManagerSettings()
        if record is None:
            record = ManagerSettingsRecord(organization_id=self.org_id)
            self.db.add(record)
        # Reassign so the JSON column is flagged dirty
        record.data = updated.model_dump(mode="json")

        AuditService(self.db, self.org_id).log_action(
            action=action,
            entity_type="manager_settings",
            entity_id=None,
            actor_id=actor.id,
            actor_role=actor.role.value,
            details={},
            before_state=before,
            after_state=updated,
        )
        self.commit()
        self.log_info(f"Settings updated: {action}", actor_id=actor.id)
        return updated

    def update(
        self,
        actor: Employee,
        capabilities: Capabilities,
        action: str,
        mutate: Callable[[ManagerSettings], ManagerSettings],
    ) -> ManagerSettings:
        """Apply a settings mutation. Any settings write needs can_manage_settings."""
        require_capability(capabilities, "can_manage_settings")
        return self.save(mutate(self.load()), actor, action)

    def set_selected_metrics(self, actor: Employee, capabilities: Capabilities, metric_ids: List[str]) -> List[str]:
        require_capability(capabilities, "can_manage_settings")
        organization = self.db.get(Organization, self.org_id)
        if organization is None:
            raise NotFoundError("Organization", self.org_id)

        metric_ids = validate_metric_ids(metric_ids)
        before = list(organization.selected_metrics or [])
        organization.selected_metrics = metric_ids

        AuditService(self.db, self.org_id).log_action(
            action="METRICS_SELECTED",
            entity_type="organization",
            entity_id=organization.id,
            actor_id=actor.id,
            actor_role=actor.role.value,
            details={"metric_ids": metric_ids},
            before_state={"selected_metrics": before},
            after_state={"selected_metrics": metric_ids},
        )
        self.commit()
        return metric_ids
