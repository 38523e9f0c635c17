"""
Admin-managed catalogs (fitness listings, membership plans).

Both catalogs share one CRUD contract; a CatalogStore is parameterised by
the table it owns, the dataclass it returns and the name of its money field.
"""

import math
import threading
from dataclasses import asdict, fields
from typing import Any, List, Type

from sqlalchemy import Table, select

from carehub.database import fitness_listings, membership_plans
from carehub.errors import NotFound, ValidationError
from carehub.models import Capability, FitnessListing, MembershipPlan
from carehub.rbac import AuthorizationGuard


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CatalogStore:

    def __init__(
        self,
        engine,
        guard: AuthorizationGuard,
        table: Table,
        item_type: Type[Any],
        money_field: str,
        label: str,
        lock=None,
    ):
        self.engine = engine
        self.guard = guard
        self.table = table
        self.item_type = item_type
        self.money_field = money_field
        self.label = label
        self._columns = [f.name for f in fields(item_type)]
        self._lock = lock if lock is not None else threading.Lock()

    # ── Helpers ──────────────────────────────────────────────────────

    def _validate(self, item: Any) -> None:
        if not isinstance(item, self.item_type):
            raise ValidationError(f"Expected a {self.item_type.__name__}.")
        if not isinstance(item.id, str) or not item.id.strip():
            raise ValidationError(f"{self.label} id must not be empty.")
        if not isinstance(item.name, str) or not item.name.strip():
            raise ValidationError(f"{self.label} name must not be empty.")
        amount = getattr(item, self.money_field)
        if not _is_number(amount) or not math.isfinite(amount) or amount < 0:
            raise ValidationError(f"{self.label} {self.money_field} must be zero or more.")
        if not _is_number(item.duration) or not math.isfinite(item.duration) or item.duration <= 0:
            raise ValidationError(f"{self.label} duration must be positive.")

    def _row_to_item(self, row) -> Any:
        return self.item_type(**{name: row._mapping[name] for name in self._columns})

    def _exists(self, conn, item_id: str) -> bool:
        return conn.execute(
            select(self.table.c.seq).where(self.table.c.id == item_id)
        ).first() is not None

    # ── Operations ───────────────────────────────────────────────────

    def add(self, caller: str, item: Any) -> None:
        self.guard.check(caller, Capability.MANAGE_CATALOG)
        self._validate(item)
        with self._lock:
            with self.engine.begin() as conn:
                if self._exists(conn, item.id):
                    raise ValidationError(f"{self.label} '{item.id}' already exists.")
                conn.execute(self.table.insert().values(**asdict(item)))

    def update(self, caller: str, item: Any) -> None:
        """Replace every field of an existing item; its list position is kept."""
        self.guard.check(caller, Capability.MANAGE_CATALOG)
        self._validate(item)
        values = asdict(item)
        item_id = values.pop("id")
        with self._lock:
            with self.engine.begin() as conn:
                if not self._exists(conn, item_id):
                    raise NotFound(f"{self.label} '{item_id}' not found.")
                conn.execute(
                    self.table.update().where(self.table.c.id == item_id).values(**values)
                )

    def delete(self, caller: str, item_id: str) -> None:
        self.guard.check(caller, Capability.MANAGE_CATALOG)
        with self._lock:
            with self.engine.begin() as conn:
                deleted = conn.execute(
                    self.table.delete().where(self.table.c.id == item_id)
                ).rowcount
        if not deleted:
            raise NotFound(f"{self.label} '{item_id}' not found.")

    def get(self, item_id: str) -> Any:
        with self._lock:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(self.table).where(self.table.c.id == item_id)
                ).first()
        if row is None:
            raise NotFound(f"{self.label} '{item_id}' not found.")
        return self._row_to_item(row)

    def list(self) -> List[Any]:
        with self._lock:
            with self.engine.connect() as conn:
                rows = conn.execute(select(self.table).order_by(self.table.c.seq)).all()
        return [self._row_to_item(r) for r in rows]


def fitness_catalog(engine, guard: AuthorizationGuard, lock=None) -> CatalogStore:
    return CatalogStore(engine, guard, fitness_listings, FitnessListing, "cost", "Fitness listing", lock)


def membership_catalog(engine, guard: AuthorizationGuard, lock=None) -> CatalogStore:
    return CatalogStore(engine, guard, membership_plans, MembershipPlan, "price", "Membership plan", lock)
