import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from viomar_pricing.engine.errors import Forbidden
from viomar_pricing.workflow.order_item_status import (
    ADMIN_ONLY_STATUSES, ADMIN_ROLES, INITIAL_STATUS, TERMINAL_STATUSES, TRANSITION_TABLE,
    OrderItemStatus, OrderItemStatusWorkflow, Role,
)

S = OrderItemStatus
ALL_ROLES = list(Role)


@pytest.fixture(scope="module")
def workflow():
    return OrderItemStatusWorkflow()


def test_nineteen_statuses_and_initial():
    assert len(OrderItemStatus) == 19
    assert INITIAL_STATUS is S.PENDIENTE


def test_table_covers_every_role_and_status():
    for role in Role:
        for status in OrderItemStatus:
            assert (role, status) in TRANSITION_TABLE, f"missing row {role.value}/{status.value}"


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
@pytest.mark.parametrize("role", ALL_ROLES + ["UNKNOWN"])
def test_terminal_statuses_allow_nothing(workflow, role, terminal):
    assert workflow.allowed_next_statuses(role, terminal) == frozenset()


@pytest.mark.parametrize("status", list(OrderItemStatus))
@pytest.mark.parametrize("role", ALL_ROLES + ["CONFECCION", "", None])
def test_same_status_is_accepted_noop(workflow, role, status):
    result = workflow.attempt_transition(role, status, status)
    assert result.accepted
    assert not result.changed
    assert result.status is status


def test_unknown_role_cannot_ship_from_montaje(workflow):
    """CONFECCION is not a role: EN_MONTAJE -> ENVIADO is forbidden."""
    result = workflow.attempt_transition("CONFECCION", S.EN_MONTAJE, S.ENVIADO)
    assert not result.accepted
    assert isinstance(result.error, Forbidden)
    assert result.status is S.EN_MONTAJE
    assert workflow.allowed_next_statuses("CONFECCION", S.EN_MONTAJE) == frozenset()


def test_production_role_pulls_next_stage(workflow):
    result = workflow.attempt_transition("OPERARIO_FLOTER", "EN_MONTAJE", "EN_IMPRESION")
    assert result.accepted
    assert result.changed
    assert result.status is S.EN_IMPRESION

    shipped = workflow.attempt_transition("OPERARIO_FLOTER", "EN_MONTAJE", "ENVIADO")
    assert not shipped.accepted


def test_forbidden_explains_permitted_statuses(workflow):
    result = workflow.attempt_transition(Role.ASESOR, S.APROBACION_INICIAL, S.EN_REVISION_CAMBIO)
    assert not result.accepted
    assert result.allowed == frozenset({S.PENDIENTE_PRODUCCION})
    assert result.error.allowed == ["PENDIENTE_PRODUCCION"]
    assert "PENDIENTE_PRODUCCION" in str(result.error)


def test_require_transition_raises(workflow):
    with pytest.raises(Forbidden):
        workflow.require_transition("EMPAQUE", S.PENDIENTE, S.COMPLETADO)
    assert workflow.require_transition("EMPAQUE", S.EMPAQUE, S.ENVIADO) is S.ENVIADO


def test_roles_and_statuses_are_case_insensitive(workflow):
    expected = frozenset({S.APROBACION_INICIAL})
    assert workflow.allowed_next_statuses("asesor", "PENDIENTE") == expected
    assert workflow.allowed_next_statuses("ASESOR", "pendiente") == expected
    assert workflow.allowed_next_statuses(" Asesor ", " Pendiente ") == expected

    result = workflow.attempt_transition("operario_floter", "en_montaje", "en_impresion")
    assert result.accepted
    assert result.status is S.EN_IMPRESION


def test_enum_role_is_accepted(workflow):
    assert workflow.allowed_next_statuses(Role.ASESOR, S.PENDIENTE) == frozenset({S.APROBACION_INICIAL})


@pytest.mark.parametrize("role", [r for r in Role if r not in ADMIN_ROLES])
def test_change_request_path_is_admin_only(workflow, role):
    for status in OrderItemStatus:
        allowed = workflow.allowed_next_statuses(role, status)
        assert not (allowed & ADMIN_ONLY_STATUSES), f"{role.value} can enter admin path from {status.value}"
    for status in ADMIN_ONLY_STATUSES:
        assert workflow.allowed_next_statuses(role, status) == frozenset()


def test_change_request_path_for_leader(workflow):
    assert workflow.allowed_next_statuses("LIDER_OPERACIONAL", S.APROBACION_INICIAL) == frozenset(
        {S.PENDIENTE_PRODUCCION, S.EN_REVISION_CAMBIO}
    )
    assert workflow.allowed_next_statuses("LIDER_OPERACIONAL", S.EN_REVISION_CAMBIO) == frozenset(
        {S.APROBADO_CAMBIO, S.RECHAZADO_CAMBIO}
    )
    assert workflow.allowed_next_statuses("LIDER_OPERACIONAL", S.RECHAZADO_CAMBIO) == frozenset(
        {S.PENDIENTE_PRODUCCION}
    )


def test_leader_cannot_cancel(workflow):
    for status in OrderItemStatus:
        assert S.CANCELADO not in workflow.allowed_next_statuses("LIDER_OPERACIONAL", status)


def test_admin_can_cancel_any_open_item(workflow):
    for status in OrderItemStatus:
        allowed = workflow.allowed_next_statuses("ADMINISTRADOR", status)
        if status in TERMINAL_STATUSES:
            assert allowed == frozenset()
        else:
            assert S.CANCELADO in allowed
            assert status not in allowed


def test_same_status_differs_by_role(workflow):
    quality = workflow.allowed_next_statuses("OPERARIO_INTEGRACION_CALIDAD", S.EN_MONTAJE)
    floter = workflow.allowed_next_statuses("OPERARIO_FLOTER", S.EN_MONTAJE)
    assert quality == frozenset({S.PENDIENTE_CONFECCION})
    assert floter == frozenset({S.EN_IMPRESION})


def test_packing_flow(workflow):
    status = S.CONFECCION
    for requested in (S.EN_BODEGA, S.EMPAQUE, S.ENVIADO, S.COMPLETADO):
        status = workflow.require_transition("EMPAQUE", status, requested)
    assert workflow.is_terminal(status)


def test_unknown_status_is_denied(workflow):
    assert workflow.allowed_next_statuses("ADMINISTRADOR", "NO_EXISTE") == frozenset()
    result = workflow.attempt_transition("ADMINISTRADOR", "PENDIENTE", "NO_EXISTE")
    assert not result.accepted


def test_to_dict():
    result = OrderItemStatusWorkflow().attempt_transition("ASESOR", "PENDIENTE", "ENVIADO")
    data = result.to_dict()
    assert data["accepted"] is False
    assert data["status"] == "PENDIENTE"
    assert data["allowed"] == ["APROBACION_INICIAL"]
    assert data["error"]["code"] == "FORBIDDEN"
