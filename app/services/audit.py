from app.services.base import BaseService
from app.models.audit_log import AuditLog
from typing import Any, Optional

class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        actor_id: Optional[int],
        actor_role: Optional[str],
        details: dict,
        organization_id: Optional[int] = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None
    ):
        """
        Create an audit log entry. Strictly append-only.
        Does NOT commit: the entry joins the caller's transaction so it is
        persisted (or rolled back) together with the change it describes.
        """
        try:
            def sanitize(obj: Any):
                if hasattr(obj, "model_dump"):
                    return obj.model_dump(mode="json")
                if isinstance(obj, dict):
                    return {k: sanitize(v) for k, v in obj.items()}
                if isinstance(obj, (list, tuple, set)):
                    return [sanitize(i) for i in obj]
                return obj

            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                actor_id=actor_id,
                actor_role=actor_role,
                details=sanitize(details),
                organization_id=organization_id or self.org_id,
                before_state=sanitize(before_state),
                after_state=sanitize(after_state)
            )
            self.db.add(db_log)
            self.db.flush()
            return db_log
        except Exception as e:
            # An audit failure never blocks the action being audited
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None
