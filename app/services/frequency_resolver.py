"""
Reporting cadence: which weekdays a report is expected on.

Resolution is a single lookup chain, most specific first:
    employee entry -> project entry -> global selection

Mutations are pure: each takes the current ManagerSettings and returns a new
one. Changing the global scope requires can_set_global_frequency; per-project
and per-employee edits are only gated by can_manage_settings at the endpoint.
"""
import logging
from typing import Dict, Iterable, List, Optional

from app.core.exceptions import ValidationError
from app.schemas.permissions import Capabilities
from app.schemas.settings import WEEKDAYS, EntityFrequency, FrequencyResolution, ManagerSettings
from app.services.permission_resolver import require_capability

logger = logging.getLogger(__name__)


def normalize_days(days: Iterable[str], field: str = "selected_days") -> List[str]:
    """Validate weekday names (case-insensitive) and return them de-duplicated in week order."""
    wanted = set()
    for day in days:
        canonical = str(day).strip().capitalize()
        if canonical not in WEEKDAYS:
            raise ValidationError(f"'{day}' is not a weekday name", field=field)
        wanted.add(canonical)
    return [d for d in WEEKDAYS if d in wanted]


def _key(entity_id) -> str:
    return str(entity_id)


def resolve_frequency(
    settings: ManagerSettings,
    employee_id: Optional[int] = None,
    project_id: Optional[int] = None,
) -> FrequencyResolution:
    chain = (
        ("employee", settings.employee_frequencies, employee_id),
        ("project", settings.project_frequencies, project_id),
    )
    for source, entries, entity_id in chain:
        if entity_id is None:
            continue
        entry = entries.get(_key(entity_id))
        if entry is not None:
            return FrequencyResolution(
                employee_id=employee_id,
                project_id=project_id,
                selected_days=list(entry.selected_days),
                source=source,
            )

    if settings.global_frequency:
        return FrequencyResolution(
            employee_id=employee_id,
            project_id=project_id,
            selected_days=list(settings.selected_days),
            source="global",
        )
    return FrequencyResolution(employee_id=employee_id, project_id=project_id, selected_days=[], source="none")


# ----------------------------------------------------------------------
# Global scope (gated)
# ----------------------------------------------------------------------

def set_global_frequency(settings: ManagerSettings, capabilities: Capabilities, enabled: bool) -> ManagerSettings:
    """
    Toggle organization-wide mode. Leaving it starts per-entity mode with an
    empty employee map; entering it drops per-employee entries.
    """
    require_capability(capabilities, "can_set_global_frequency")
    if enabled == settings.global_frequency:
        return settings
    logger.info(f"Global frequency mode {'enabled' if enabled else 'disabled'}")
    return settings.model_copy(update={
        "global_frequency": enabled,
        "employee_frequencies": {},
    })


def set_global_days(settings: ManagerSettings, capabilities: Capabilities, days: Iterable[str]) -> ManagerSettings:
    require_capability(capabilities, "can_set_global_frequency")
    return settings.model_copy(update={"selected_days": normalize_days(days)})


# ----------------------------------------------------------------------
# Per-entity scope
# ----------------------------------------------------------------------

def _sync(entries: Dict[str, EntityFrequency], selected_ids: Iterable[int]) -> Dict[str, EntityFrequency]:
    """Keep selected entries, seed empty ones for new selections, drop the rest."""
    selected = [_key(i) for i in selected_ids]
    synced = {}
    for key in selected:
        existing = entries.get(key)
        synced[key] = existing.model_copy() if existing is not None else EntityFrequency()
    return synced


def sync_employee_selection(settings: ManagerSettings, employee_ids: Iterable[int]) -> ManagerSettings:
    return settings.model_copy(update={
        "employee_frequencies": _sync(settings.employee_frequencies, employee_ids),
    })


def sync_project_selection(settings: ManagerSettings, project_ids: Iterable[int]) -> ManagerSettings:
    return settings.model_copy(update={
        "project_frequencies": _sync(settings.project_frequencies, project_ids),
    })


def set_employee_days(settings: ManagerSettings, employee_id: int, days: Iterable[str]) -> ManagerSettings:
    entries = dict(settings.employee_frequencies)
    entries[_key(employee_id)] = EntityFrequency(selected_days=normalize_days(days))
    return settings.model_copy(update={"employee_frequencies": entries})


def set_project_days(settings: ManagerSettings, project_id: int, days: Iterable[str]) -> ManagerSettings:
    entries = dict(settings.project_frequencies)
    entries[_key(project_id)] = EntityFrequency(selected_days=normalize_days(days))
    return settings.model_copy(update={"project_frequencies": entries})


def set_allow_late_submissions(settings: ManagerSettings, capabilities: Capabilities, allowed: bool) -> ManagerSettings:
    require_capability(capabilities, "can_manage_settings")
    return settings.model_copy(update={"allow_late_submissions": allowed})
