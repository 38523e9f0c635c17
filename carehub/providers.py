"""
Provider directory: admin-curated, append-only list of care providers.
"""

import threading
from typing import List

from sqlalchemy import select

from carehub.database import providers
from carehub.errors import NotFound, ValidationError
from carehub.models import Capability, Provider
from carehub.rbac import AuthorizationGuard

REQUIRED_PROVIDER_FIELDS = ("id", "name", "specialization", "location")


def _row_to_provider(row) -> Provider:
    return Provider(
        id=row.id,
        name=row.name,
        specialization=row.specialization,
        location=row.location,
        online=bool(row.online),
    )


class ProviderDirectory:

    def __init__(self, engine, guard: AuthorizationGuard, lock=None):
        self.engine = engine
        self.guard = guard
        self._lock = lock if lock is not None else threading.Lock()

    def add(self, caller: str, provider: Provider) -> None:
        self.guard.check(caller, Capability.MANAGE_PROVIDERS)
        for field in REQUIRED_PROVIDER_FIELDS:
            value = getattr(provider, field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"Provider {field} must not be empty.")

        with self._lock:
            with self.engine.begin() as conn:
                if self._exists(conn, provider.id):
                    raise ValidationError(f"Provider '{provider.id}' already exists.")
                conn.execute(
                    providers.insert().values(
                        id=provider.id,
                        name=provider.name,
                        specialization=provider.specialization,
                        location=provider.location,
                        online=bool(provider.online),
                    )
                )

    def _exists(self, conn, provider_id: str) -> bool:
        return conn.execute(
            select(providers.c.seq).where(providers.c.id == provider_id)
        ).first() is not None

    def exists(self, provider_id: str) -> bool:
        with self._lock:
            with self.engine.connect() as conn:
                return self._exists(conn, provider_id)

    def get(self, provider_id: str) -> Provider:
        with self._lock:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(providers).where(providers.c.id == provider_id)
                ).first()
        if row is None:
            raise NotFound(f"Provider '{provider_id}' not found.")
        return _row_to_provider(row)

    def list(self) -> List[Provider]:
        """All providers in the order they were added."""
        with self._lock:
            with self.engine.connect() as conn:
                rows = conn.execute(select(providers).order_by(providers.c.seq)).all()
        return [_row_to_provider(r) for r in rows]
