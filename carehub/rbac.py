"""
Role-Based Access Control – role assignments and the authorization guard.
"""

import threading
from dataclasses import dataclass
from typing import Optional, Set

from sqlalchemy import select

from carehub.database import roles
from carehub.errors import PermissionDenied, ValidationError
from carehub.models import ANONYMOUS, Capability, Role


@dataclass
class Policy:
    """Capabilities held by one role."""
    role: Role
    capabilities: Set[Capability]
    notes: str


def build_policy(role: Role) -> Policy:
    """Derive the RBAC Policy for a role."""

    if role == Role.ADMIN:
        return Policy(
            role=Role.ADMIN,
            capabilities=set(Capability),
            notes="Admin can manage roles, providers, catalogs, entitlements and consultations.",
        )

    if role == Role.USER:
        return Policy(
            role=Role.USER,
            capabilities={Capability.AUTHENTICATED},
            notes="User can keep their own profile and book their own consultations.",
        )

    if role == Role.GUEST:
        return Policy(
            role=Role.GUEST,
            capabilities=set(),
            notes="Guest can only read the public directories and catalogs.",
        )

    raise ValueError(f"Unknown role: {role}")


class RoleRegistry:
    """Maps caller identities to roles, backed by the `roles` table."""

    def __init__(self, engine, bootstrap_admin_id: Optional[str] = None, lock=None):
        self.engine = engine
        self.bootstrap_admin_id = bootstrap_admin_id
        self._lock = lock if lock is not None else threading.Lock()
        # Role changes are checked by the same guard every store uses.
        self.guard = AuthorizationGuard(self)

    def _default_role(self, caller: str) -> Role:
        if caller == ANONYMOUS:
            return Role.GUEST
        if self.bootstrap_admin_id is not None and caller == self.bootstrap_admin_id:
            return Role.ADMIN
        return Role.USER

    def get_role(self, caller: str) -> Role:
        with self._lock:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(roles.c.role).where(roles.c.identity == caller)
                ).first()
        if row is None:
            return self._default_role(caller)
        return Role(row.role)

    def is_admin(self, caller: str) -> bool:
        return self.get_role(caller) == Role.ADMIN

    def assign_role(self, caller: str, target: str, role: Role) -> None:
        """Give *target* an explicit role. Only an admin may do this."""
        self.guard.check(caller, Capability.MANAGE_ROLES)
        if not isinstance(role, Role):
            raise ValidationError(f"Unsupported role '{role}'.")
        if not target or target == ANONYMOUS:
            raise ValidationError("Roles can only be assigned to authenticated identities.")

        with self._lock:
            with self.engine.begin() as conn:
                updated = conn.execute(
                    roles.update().where(roles.c.identity == target).values(role=role.value)
                ).rowcount
                if not updated:
                    conn.execute(roles.insert().values(identity=target, role=role.value))


class AuthorizationGuard:
    """Single entry point for every capability check in the core."""

    def __init__(self, registry: RoleRegistry):
        self.registry = registry

    def policy_for(self, caller: str) -> Policy:
        return build_policy(self.registry.get_role(caller))

    def allows(self, caller: str, capability: Capability) -> bool:
        if capability == Capability.AUTHENTICATED and caller == ANONYMOUS:
            return False
        return capability in self.policy_for(caller).capabilities

    def check(self, caller: str, capability: Capability) -> None:
        """Raise PermissionDenied unless *caller* holds *capability*."""
        if not self.allows(caller, capability):
            raise PermissionDenied(
                f"Caller lacks the '{capability.value}' capability."
            )
