import pytest

from app.core.exceptions import AccessDeniedError
from app.models.employee import Employee, EmployeeRole
from app.schemas.permissions import Capabilities, EmployeePermissions
from app.services.permission_resolver import require_capability, resolve_permissions


def _employee(**kwargs):
    return Employee(id=1, organization_id=1, name="Pat", email="pat@example.com", role=EmployeeRole.MANAGER, **kwargs)


def test_account_owner_gets_everything_regardless_of_stored_flags():
    owner = _employee(
        is_account_owner=True,
        permissions={"can_set_global_frequency": False, "can_view_organization_wide": False, "can_manage_settings": False},
    )
    caps = resolve_permissions(owner)
    assert caps == Capabilities(
        can_set_global_frequency=True,
        can_view_organization_wide=True,
        can_manage_settings=True,
        is_account_owner=True,
    )


def test_stored_flags_are_read_individually():
    caps = resolve_permissions(_employee(is_account_owner=False, permissions={"can_view_organization_wide": True}))
    assert caps.can_view_organization_wide is True
    assert caps.can_set_global_frequency is False
    assert caps.can_manage_settings is False
    assert caps.is_account_owner is False


@pytest.mark.parametrize("permissions", [None, {}, {"can_manage_settings": None}, {"can_manage_settings": "yes"}])
def test_missing_or_malformed_flags_default_to_false(permissions):
    caps = resolve_permissions(_employee(is_account_owner=False, permissions=permissions))
    assert caps == Capabilities()


def test_pydantic_permissions_are_accepted():
    employee = _employee(is_account_owner=False)
    employee.permissions = EmployeePermissions(can_manage_settings=True)
    assert resolve_permissions(employee).can_manage_settings is True


def test_no_employee_means_no_capability():
    assert resolve_permissions(None) == Capabilities()


def test_resolution_is_idempotent():
    employee = _employee(is_account_owner=False, permissions={"can_set_global_frequency": True})
    assert resolve_permissions(employee) == resolve_permissions(employee)


def test_capabilities_are_immutable():
    caps = resolve_permissions(_employee(is_account_owner=False))
    with pytest.raises(Exception):
        caps.can_manage_settings = True


def test_require_capability_names_the_missing_flag():
    with pytest.raises(AccessDeniedError) as exc:
        require_capability(Capabilities(), "can_set_global_frequency")
    assert exc.value.status_code == 403
    assert exc.value.details == {"capability": "can_set_global_frequency"}


def test_require_capability_passes_when_granted():
    require_capability(Capabilities(can_manage_settings=True), "can_manage_settings")


def test_require_capability_rejects_unknown_names():
    with pytest.raises(ValueError):
        require_capability(Capabilities(), "can_fly")
