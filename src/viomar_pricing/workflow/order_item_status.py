"""
Order Item Status Workflow - role-gated state machine for order items.

The rules are data. Two literal maps describe the production pipeline
(PIPELINE_EDGES) and which statuses each operational role moves items into
(ROLE_TARGETS). They are composed once into TRANSITION_TABLE, keyed by
(role, current_status); lookups never branch on role names.

Policy:
- requested == current is an accepted no-op for anyone
- terminal statuses (COMPLETADO, CANCELADO) allow nothing
- only administrative roles enter or leave REVISION_ADMIN and the
  change-request path (EN_REVISION_CAMBIO / APROBADO_CAMBIO / RECHAZADO_CAMBIO)
- unknown roles are denied
- role and status strings are matched case-insensitively
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union

from ..engine.errors import Forbidden

logger = logging.getLogger(__name__)


class OrderItemStatus(str, Enum):
    PENDIENTE = "PENDIENTE"
    REVISION_ADMIN = "REVISION_ADMIN"
    APROBACION_INICIAL = "APROBACION_INICIAL"
    PENDIENTE_PRODUCCION = "PENDIENTE_PRODUCCION"
    EN_MONTAJE = "EN_MONTAJE"
    EN_IMPRESION = "EN_IMPRESION"
    SUBLIMACION = "SUBLIMACION"
    CORTE_MANUAL = "CORTE_MANUAL"
    CORTE_LASER = "CORTE_LASER"
    PENDIENTE_CONFECCION = "PENDIENTE_CONFECCION"
    CONFECCION = "CONFECCION"
    EN_BODEGA = "EN_BODEGA"
    EMPAQUE = "EMPAQUE"
    ENVIADO = "ENVIADO"
    EN_REVISION_CAMBIO = "EN_REVISION_CAMBIO"
    APROBADO_CAMBIO = "APROBADO_CAMBIO"
    RECHAZADO_CAMBIO = "RECHAZADO_CAMBIO"
    COMPLETADO = "COMPLETADO"
    CANCELADO = "CANCELADO"


class Role(str, Enum):
    ADMINISTRADOR = "ADMINISTRADOR"
    LIDER_OPERACIONAL = "LIDER_OPERACIONAL"
    ASESOR = "ASESOR"
    LIDER_SUMINISTROS = "LIDER_SUMINISTROS"
    COMPRA_NACIONAL = "COMPRA_NACIONAL"
    COMPRA_INTERNACIONAL = "COMPRA_INTERNACIONAL"
    OPERARIO_BODEGA = "OPERARIO_BODEGA"
    OPERARIO_MONTAJE = "OPERARIO_MONTAJE"
    OPERARIO_FLOTER = "OPERARIO_FLOTER"
    OPERARIO_SUBLIMACION = "OPERARIO_SUBLIMACION"
    OPERARIO_CORTE_MANUAL = "OPERARIO_CORTE_MANUAL"
    OPERARIO_CORTE_LASER = "OPERARIO_CORTE_LASER"
    OPERARIO_INTEGRACION_CALIDAD = "OPERARIO_INTEGRACION_CALIDAD"
    EMPAQUE = "EMPAQUE"


S = OrderItemStatus

INITIAL_STATUS = S.PENDIENTE
TERMINAL_STATUSES = frozenset({S.COMPLETADO, S.CANCELADO})
ADMIN_ONLY_STATUSES = frozenset({
    S.REVISION_ADMIN,
    S.EN_REVISION_CAMBIO,
    S.APROBADO_CAMBIO,
    S.RECHAZADO_CAMBIO,
})
ADMIN_ROLES = frozenset({Role.ADMINISTRADOR, Role.LIDER_OPERACIONAL})

PIPELINE_EDGES: Mapping[OrderItemStatus, frozenset] = MappingProxyType({
    S.PENDIENTE: frozenset({S.REVISION_ADMIN, S.APROBACION_INICIAL}),
    S.REVISION_ADMIN: frozenset({S.APROBACION_INICIAL}),
    S.APROBACION_INICIAL: frozenset({S.PENDIENTE_PRODUCCION, S.EN_REVISION_CAMBIO}),
    S.PENDIENTE_PRODUCCION: frozenset({
        S.EN_MONTAJE, S.EN_IMPRESION, S.SUBLIMACION,
        S.CORTE_MANUAL, S.CORTE_LASER, S.PENDIENTE_CONFECCION,
    }),
    S.EN_MONTAJE: frozenset({S.EN_IMPRESION, S.PENDIENTE_CONFECCION}),
    S.EN_IMPRESION: frozenset({S.SUBLIMACION, S.PENDIENTE_CONFECCION}),
    S.SUBLIMACION: frozenset({S.CORTE_MANUAL, S.CORTE_LASER, S.PENDIENTE_CONFECCION}),
    S.CORTE_MANUAL: frozenset({S.PENDIENTE_CONFECCION}),
    S.CORTE_LASER: frozenset({S.PENDIENTE_CONFECCION}),
    S.PENDIENTE_CONFECCION: frozenset({S.CONFECCION}),
    S.CONFECCION: frozenset({S.EN_BODEGA}),
    S.EN_BODEGA: frozenset({S.EMPAQUE}),
    S.EMPAQUE: frozenset({S.ENVIADO}),
    S.ENVIADO: frozenset({S.COMPLETADO}),
    S.EN_REVISION_CAMBIO: frozenset({S.APROBADO_CAMBIO, S.RECHAZADO_CAMBIO}),
    S.APROBADO_CAMBIO: frozenset({S.PENDIENTE_PRODUCCION}),
    S.RECHAZADO_CAMBIO: frozenset({S.PENDIENTE_PRODUCCION}),
    S.COMPLETADO: frozenset(),
    S.CANCELADO: frozenset(),
})

_INTAKE = frozenset({S.PENDIENTE, S.APROBACION_INICIAL, S.PENDIENTE_PRODUCCION})

# Statuses each operational role may move an item into
ROLE_TARGETS: Mapping[Role, frozenset] = MappingProxyType({
    Role.ASESOR: _INTAKE,
    Role.LIDER_SUMINISTROS: _INTAKE,
    Role.COMPRA_NACIONAL: _INTAKE,
    Role.COMPRA_INTERNACIONAL: _INTAKE,
    Role.OPERARIO_BODEGA: frozenset({S.PENDIENTE_PRODUCCION, S.EN_BODEGA}),
    Role.OPERARIO_MONTAJE: frozenset({S.EN_MONTAJE}),
    Role.OPERARIO_FLOTER: frozenset({S.EN_IMPRESION}),
    Role.OPERARIO_SUBLIMACION: frozenset({S.SUBLIMACION}),
    Role.OPERARIO_CORTE_MANUAL: frozenset({S.CORTE_MANUAL}),
    Role.OPERARIO_CORTE_LASER: frozenset({S.CORTE_LASER}),
    Role.OPERARIO_INTEGRACION_CALIDAD: frozenset({S.PENDIENTE_CONFECCION, S.CONFECCION}),
    Role.EMPAQUE: frozenset({S.CONFECCION, S.EN_BODEGA, S.EMPAQUE, S.ENVIADO, S.COMPLETADO}),
})


def _build_table() -> Mapping[tuple[Role, OrderItemStatus], frozenset]:
    table = {}
    everything = frozenset(OrderItemStatus)
    for status in OrderItemStatus:
        terminal = status in TERMINAL_STATUSES
        edges = PIPELINE_EDGES[status]

        # Administrators may correct an item to any status, including cancel
        table[(Role.ADMINISTRADOR, status)] = frozenset() if terminal else everything - {status}
        table[(Role.LIDER_OPERACIONAL, status)] = frozenset() if terminal else edges - {S.CANCELADO}

        for role, targets in ROLE_TARGETS.items():
            if terminal or status in ADMIN_ONLY_STATUSES:
                table[(role, status)] = frozenset()
            else:
                table[(role, status)] = frozenset(edges & targets) - ADMIN_ONLY_STATUSES
    return MappingProxyType(table)


TRANSITION_TABLE = _build_table()


def _coerce_status(value) -> Optional[OrderItemStatus]:
    if isinstance(value, str) and not isinstance(value, OrderItemStatus):
        value = value.strip().upper()
    try:
        return OrderItemStatus(value)
    except ValueError:
        return None


def _coerce_role(value) -> Optional[Role]:
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.strip().upper())
    except ValueError:
        return None


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition attempt. A rejected attempt leaves status unchanged."""
    accepted: bool
    status: Union[OrderItemStatus, str]
    allowed: frozenset = field(default_factory=frozenset)
    changed: bool = False
    error: Optional[Forbidden] = None

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "changed": self.changed,
            "status": getattr(self.status, "value", self.status),
            "allowed": sorted(s.value for s in self.allowed),
            "error": self.error.to_dict() if self.error else None,
        }


class OrderItemStatusWorkflow:
    """Answers which status changes a role may make, and validates them."""

    def __init__(self, table: Mapping = TRANSITION_TABLE):
        self.table = table

    def allowed_next_statuses(self, role, current) -> frozenset:
        """Statuses `role` may move an item in `current` to. Empty when unknown."""
        role = _coerce_role(role)
        current = _coerce_status(current)
        if role is None or current is None:
            return frozenset()
        return self.table.get((role, current), frozenset())

    def attempt_transition(self, role, current, requested) -> TransitionResult:
        """Validate a status change without performing it."""
        current_status = _coerce_status(current)
        requested_status = _coerce_status(requested)

        if requested == current or (current_status is not None and requested_status is current_status):
            return TransitionResult(accepted=True, status=current_status or current)

        allowed = self.allowed_next_statuses(role, current)
        if requested_status is not None and requested_status in allowed:
            return TransitionResult(accepted=True, status=requested_status, allowed=allowed, changed=True)

        error = Forbidden(
            role=str(getattr(role, "value", role)),
            current=str(getattr(current, "value", current)),
            requested=str(getattr(requested, "value", requested)),
            allowed=[s.value for s in allowed],
        )
        logger.info("Rejected status change: %s", error)
        return TransitionResult(
            accepted=False,
            status=current_status or current,
            allowed=allowed,
            error=error,
        )

    def require_transition(self, role, current, requested) -> OrderItemStatus:
        """Like attempt_transition but raises Forbidden. Returns the new status."""
        result = self.attempt_transition(role, current, requested)
        if not result.accepted:
            raise result.error
        return result.status

    def is_terminal(self, status) -> bool:
        return _coerce_status(status) in TERMINAL_STATUSES
