import pytest

from app.core.exceptions import AccessDeniedError, ValidationError
from app.schemas.permissions import Capabilities
from app.schemas.settings import EntityFrequency, ManagerSettings
from app.services import frequency_resolver as fr

ALL = Capabilities(can_set_global_frequency=True, can_view_organization_wide=True, can_manage_settings=True)
NONE = Capabilities()


@pytest.fixture
def layered():
    return ManagerSettings(
        global_frequency=True,
        selected_days=["Friday"],
        employee_frequencies={"7": EntityFrequency(selected_days=["Monday"])},
        project_frequencies={"3": EntityFrequency(selected_days=["Wednesday"])},
    )


def test_employee_entry_wins(layered):
    result = fr.resolve_frequency(layered, employee_id=7, project_id=3)
    assert result.selected_days == ["Monday"]
    assert result.source == "employee"


def test_project_entry_beats_global(layered):
    result = fr.resolve_frequency(layered, employee_id=8, project_id=3)
    assert result.selected_days == ["Wednesday"]
    assert result.source == "project"


def test_global_is_the_fallback(layered):
    result = fr.resolve_frequency(layered, employee_id=8, project_id=4)
    assert result.selected_days == ["Friday"]
    assert result.source == "global"


def test_no_cadence_when_global_is_off_and_nothing_matches(layered):
    settings = layered.model_copy(update={"global_frequency": False})
    result = fr.resolve_frequency(settings, employee_id=8, project_id=4)
    assert result.selected_days == []
    assert result.source == "none"


def test_normalize_days_orders_and_dedupes():
    assert fr.normalize_days(["friday", "Monday", "FRIDAY"]) == ["Monday", "Friday"]


def test_normalize_days_rejects_unknown_names():
    with pytest.raises(ValidationError) as exc:
        fr.normalize_days(["Funday"])
    assert exc.value.field == "selected_days"


def test_global_toggle_requires_capability(layered):
    with pytest.raises(AccessDeniedError):
        fr.set_global_frequency(layered, NONE, False)
    with pytest.raises(AccessDeniedError):
        fr.set_global_days(layered, Capabilities(can_manage_settings=True), ["Monday"])


def test_turning_global_off_resets_employee_entries(layered):
    updated = fr.set_global_frequency(layered, ALL, False)
    assert updated.global_frequency is False
    assert updated.employee_frequencies == {}
    assert updated.project_frequencies == layered.project_frequencies
    # The input is left untouched
    assert layered.employee_frequencies


def test_turning_global_on_drops_employee_entries():
    settings = ManagerSettings(global_frequency=False, employee_frequencies={"1": EntityFrequency(selected_days=["Monday"])})
    updated = fr.set_global_frequency(settings, ALL, True)
    assert updated.global_frequency is True
    assert updated.employee_frequencies == {}


def test_set_global_days(layered):
    assert fr.set_global_days(layered, ALL, ["tuesday"]).selected_days == ["Tuesday"]


def test_sync_selection_prunes_and_seeds(layered):
    updated = fr.sync_employee_selection(layered, [7, 9])
    assert set(updated.employee_frequencies) == {"7", "9"}
    assert updated.employee_frequencies["7"].selected_days == ["Monday"]
    assert updated.employee_frequencies["9"].selected_days == []

    updated = fr.sync_project_selection(layered, [])
    assert updated.project_frequencies == {}


def test_per_entity_days_need_no_global_capability(layered):
    updated = fr.set_employee_days(layered, 9, ["Thursday"])
    assert updated.employee_frequencies["9"].selected_days == ["Thursday"]
    updated = fr.set_project_days(updated, 3, ["Monday", "Tuesday"])
    assert fr.resolve_frequency(updated, employee_id=1, project_id=3).selected_days == ["Monday", "Tuesday"]


def test_late_submission_policy_is_gated(layered):
    with pytest.raises(AccessDeniedError):
        fr.set_allow_late_submissions(layered, NONE, False)
    updated = fr.set_allow_late_submissions(layered, Capabilities(can_manage_settings=True), False)
    assert updated.late_submissions_allowed is False
