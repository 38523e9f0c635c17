"""
Consultation ledger – bookings between a patient and a provider, and the
lifecycle they move through.

    pending ──> confirmed ──> completed
       │            │
       └────────────┴──────> cancelled

`completed` and `cancelled` are terminal.
"""

import threading
from typing import Dict, FrozenSet, List

from sqlalchemy import func, select

from carehub.database import consultations
from carehub.errors import InvalidTransition, NotFound, PermissionDenied, ValidationError
from carehub.models import (
    ANONYMOUS,
    Capability,
    Consultation,
    ConsultationRequest,
    ConsultationStatus,
)
from carehub.providers import ProviderDirectory
from carehub.rbac import AuthorizationGuard

ALLOWED_TRANSITIONS: Dict[ConsultationStatus, FrozenSet[ConsultationStatus]] = {
    ConsultationStatus.PENDING: frozenset({ConsultationStatus.CONFIRMED, ConsultationStatus.CANCELLED}),
    ConsultationStatus.CONFIRMED: frozenset({ConsultationStatus.COMPLETED, ConsultationStatus.CANCELLED}),
    ConsultationStatus.COMPLETED: frozenset(),
    ConsultationStatus.CANCELLED: frozenset(),
}

# Upper bound of the signed 64-bit `time` column.
MAX_TIME_NS = 2 ** 63 - 1

TERMINAL_STATUSES = frozenset(s for s, nxt in ALLOWED_TRANSITIONS.items() if not nxt)


def can_transition(current: ConsultationStatus, new: ConsultationStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def _row_to_consultation(row) -> Consultation:
    return Consultation(
        id=row.id,
        patient_id=row.patient_id,
        provider_id=row.provider_id,
        time=row.time,
        modality=row.modality,
        notes=row.notes,
        status=ConsultationStatus(row.status),
    )


class ConsultationLedger:

    def __init__(
        self,
        engine,
        guard: AuthorizationGuard,
        directory: ProviderDirectory,
        patient_may_cancel: bool = False,
        reject_duplicates: bool = False,
        lock=None,
    ):
        self.engine = engine
        self.guard = guard
        self.directory = directory
        self.patient_may_cancel = patient_may_cancel
        self.reject_duplicates = reject_duplicates
        self._lock = lock if lock is not None else threading.Lock()

    # ── Booking ──────────────────────────────────────────────────────

    def request(self, caller: str, req: ConsultationRequest) -> str:
        """Book a consultation for the caller and return its new id."""
        self.guard.check(caller, Capability.AUTHENTICATED)
        if req.patient_id != caller:
            raise PermissionDenied("Consultations can only be requested for yourself.")
        if (
            isinstance(req.time, bool)
            or not isinstance(req.time, int)
            or not 0 <= req.time <= MAX_TIME_NS
        ):
            raise ValidationError("Consultation time must be a non-negative 64-bit integer (ns).")
        if not isinstance(req.modality, str) or not req.modality.strip():
            raise ValidationError("Consultation modality must not be empty.")
        if not self.directory.exists(req.provider_id):
            raise NotFound(f"Provider '{req.provider_id}' not found.")

        with self._lock:
            with self.engine.begin() as conn:
                if self.reject_duplicates and self._has_live_duplicate(conn, req):
                    raise ValidationError(
                        "An open consultation already exists for this provider and time."
                    )
                seq = conn.execute(
                    select(func.coalesce(func.max(consultations.c.seq), 0))
                ).scalar_one() + 1
                consultation_id = f"c{seq}"
                conn.execute(
                    consultations.insert().values(
                        seq=seq,
                        id=consultation_id,
                        patient_id=req.patient_id,
                        provider_id=req.provider_id,
                        time=req.time,
                        modality=req.modality,
                        notes=req.notes or "",
                        status=ConsultationStatus.PENDING.value,
                    )
                )
        return consultation_id

    def _has_live_duplicate(self, conn, req: ConsultationRequest) -> bool:
        row = conn.execute(
            select(consultations.c.seq).where(
                consultations.c.patient_id == req.patient_id,
                consultations.c.provider_id == req.provider_id,
                consultations.c.time == req.time,
                consultations.c.status.not_in([s.value for s in TERMINAL_STATUSES]),
            )
        ).first()
        return row is not None

    # ── Lifecycle ────────────────────────────────────────────────────

    def update_status(self, caller: str, consultation_id: str, new_status: ConsultationStatus) -> None:
        is_admin = self.guard.allows(caller, Capability.MANAGE_CONSULTATIONS)
        if not is_admin and not (
            self.patient_may_cancel and self.guard.allows(caller, Capability.AUTHENTICATED)
        ):
            raise PermissionDenied("Only an admin can change a consultation's status.")
        if not isinstance(new_status, ConsultationStatus):
            raise ValidationError(f"Unsupported consultation status '{new_status}'.")

        with self._lock:
            with self.engine.begin() as conn:
                row = conn.execute(
                    select(consultations).where(consultations.c.id == consultation_id)
                ).first()
                if row is None:
                    raise NotFound(f"Consultation '{consultation_id}' not found.")
                current = _row_to_consultation(row)

                if not is_admin and (
                    current.patient_id != caller
                    or new_status != ConsultationStatus.CANCELLED
                ):
                    raise PermissionDenied("Patients may only cancel their own consultations.")
                if not can_transition(current.status, new_status):
                    raise InvalidTransition(
                        f"Cannot move consultation from {current.status.value} to {new_status.value}."
                    )

                conn.execute(
                    consultations.update()
                    .where(consultations.c.id == consultation_id)
                    .values(status=new_status.value)
                )

    # ── Reads ────────────────────────────────────────────────────────

    def get(self, caller: str, consultation_id: str) -> Consultation:
        """One booking, visible to its patient or an admin.

        Anyone else gets NotFound, the same as for an unknown id.
        """
        query = select(consultations).where(consultations.c.id == consultation_id)
        if not self.guard.allows(caller, Capability.MANAGE_CONSULTATIONS):
            query = query.where(consultations.c.patient_id == caller)
        with self._lock:
            with self.engine.connect() as conn:
                row = conn.execute(query).first()
        if row is None:
            raise NotFound(f"Consultation '{consultation_id}' not found.")
        return _row_to_consultation(row)

    def list_for_caller(self, caller: str) -> List[Consultation]:
        """Every booking for an admin, the caller's own bookings otherwise."""
        if caller == ANONYMOUS:
            return []
        query = select(consultations).order_by(consultations.c.seq)
        if not self.guard.allows(caller, Capability.MANAGE_CONSULTATIONS):
            query = query.where(consultations.c.patient_id == caller)
        with self._lock:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        return [_row_to_consultation(r) for r in rows]
