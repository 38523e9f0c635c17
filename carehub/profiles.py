"""
Patient profiles and the VIP entitlement that rides on them.
"""

import threading
from typing import Optional

from sqlalchemy import select

from carehub.config import MAX_PROFILE_AGE
from carehub.database import profiles
from carehub.errors import NotFound, PermissionDenied, ValidationError
from carehub.models import ANONYMOUS, Capability, PatientProfile
from carehub.rbac import AuthorizationGuard


def validate_profile(profile: PatientProfile) -> None:
    """Reject a profile whose fields are out of range."""
    if not profile.name or not profile.name.strip():
        raise ValidationError("Profile name must not be empty.")
    if isinstance(profile.age, bool) or not isinstance(profile.age, int):
        raise ValidationError("Profile age must be an integer.")
    if not 0 < profile.age <= MAX_PROFILE_AGE:
        raise ValidationError(f"Profile age must be between 1 and {MAX_PROFILE_AGE}.")


def _row_to_profile(row) -> PatientProfile:
    return PatientProfile(
        owner_id=row.owner_id,
        name=row.name,
        age=row.age,
        description=row.description,
        preferences=row.preferences,
        is_vip=bool(row.is_vip),
    )


class ProfileStore:
    """One PatientProfile per caller identity."""

    def __init__(self, engine, guard: AuthorizationGuard, lock=None):
        self.engine = engine
        self.guard = guard
        self._lock = lock if lock is not None else threading.Lock()

    def _load(self, conn, owner_id: str) -> Optional[PatientProfile]:
        row = conn.execute(
            select(profiles).where(profiles.c.owner_id == owner_id)
        ).first()
        return _row_to_profile(row) if row is not None else None

    def get(self, caller: str) -> Optional[PatientProfile]:
        """Return the profile owned by *caller*, or None."""
        if caller == ANONYMOUS:
            return None
        with self._lock:
            with self.engine.connect() as conn:
                return self._load(conn, caller)

    def get_own(self, caller: str) -> Optional[PatientProfile]:
        return self.get(caller)

    def get_patient_profile(self, caller: str) -> PatientProfile:
        profile = self.get(caller)
        if profile is None:
            raise NotFound("No profile saved for this caller yet.")
        return profile

    def get_by_identity(self, caller: str, target: str) -> Optional[PatientProfile]:
        """Read someone's profile: allowed for the owner and for admins."""
        if caller == ANONYMOUS or (
            caller != target
            and not self.guard.allows(caller, Capability.VIEW_PROFILES)
        ):
            raise PermissionDenied("Only the owner or an admin can view this profile.")
        return self.get(target)

    def save(self, caller: str, profile: PatientProfile) -> PatientProfile:
        """Create or overwrite the caller's profile.

        The first save always stores is_vip=False. Later saves keep the
        stored owner_id and is_vip and replace everything else.
        """
        self.guard.check(caller, Capability.AUTHENTICATED)
        if profile.owner_id != caller:
            raise PermissionDenied("A profile can only be saved by its owner.")
        validate_profile(profile)

        with self._lock:
            with self.engine.begin() as conn:
                existing = self._load(conn, caller)
                fields = dict(
                    name=profile.name,
                    age=profile.age,
                    description=profile.description,
                    preferences=profile.preferences,
                )
                if existing is None:
                    conn.execute(
                        profiles.insert().values(owner_id=caller, is_vip=False, **fields)
                    )
                    is_vip = False
                else:
                    conn.execute(
                        profiles.update()
                        .where(profiles.c.owner_id == caller)
                        .values(**fields)
                    )
                    is_vip = existing.is_vip
        return PatientProfile(owner_id=caller, is_vip=is_vip, **fields)

    def set_vip(self, target: str, is_vip: bool) -> None:
        """Write the VIP flag directly. Callers must authorize first."""
        with self._lock:
            with self.engine.begin() as conn:
                updated = conn.execute(
                    profiles.update()
                    .where(profiles.c.owner_id == target)
                    .values(is_vip=bool(is_vip))
                ).rowcount
        if not updated:
            raise NotFound(f"No profile exists for '{target}'.")


class VIPEntitlementManager:
    """Admin-controlled VIP flag on patient profiles."""

    def __init__(self, store: ProfileStore, guard: AuthorizationGuard):
        self.store = store
        self.guard = guard

    def get(self, caller: str) -> bool:
        profile = self.store.get(caller)
        return profile.is_vip if profile is not None else False

    def set(self, caller: str, target: str, is_vip: bool) -> None:
        self.guard.check(caller, Capability.MANAGE_ENTITLEMENTS)
        if not isinstance(is_vip, bool):
            raise ValidationError("is_vip must be true or false.")
        self.store.set_vip(target, is_vip)
