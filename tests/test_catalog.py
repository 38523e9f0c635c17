"""
Unit tests for the fitness listing and membership plan catalogs.
"""

import pytest

from carehub.errors import NotFound, PermissionDenied, ValidationError
from carehub.models import ANONYMOUS, FitnessListing, MembershipPlan
from conftest import ADMIN, ALICE


# ── Helpers ──────────────────────────────────────────────────────────

def listing(lid, name="Morning Yoga", cost=15.0, duration=60.0):
    return FitnessListing(id=lid, name=name, type_of_class="yoga",
                          location="Studio 3", online=False, cost=cost, duration=duration)


def plan(pid, name="Plus", price=99.0, duration=6.0):
    return MembershipPlan(id=pid, name=name, description="Priority booking",
                          price=price, duration=duration)


CATALOGS = {
    "fitness": dict(
        make=listing,
        add="add_fitness_listing",
        update="update_fitness_listing",
        delete="delete_fitness_listing",
        get="get_fitness_listing",
        list="list_fitness_listings",
        money="cost",
    ),
    "memberships": dict(
        make=plan,
        add="add_membership_plan",
        update="update_membership_plan",
        delete="delete_membership_plan",
        get="get_membership_plan",
        list="list_membership_plans",
        money="price",
    ),
}


class Catalog:
    """Binds one catalog's service methods so tests run against both."""

    def __init__(self, service, ops):
        self.make = ops["make"]
        self.money = ops["money"]
        for op in ("add", "update", "delete", "get", "list"):
            setattr(self, op, getattr(service, ops[op]))

    def ids(self):
        return [item.id for item in self.list()]


@pytest.fixture(params=sorted(CATALOGS))
def catalog(request, service):
    return Catalog(service, CATALOGS[request.param])


# ── Tests ────────────────────────────────────────────────────────────

def test_add_then_list_and_get(catalog):
    item = catalog.make("a1")
    catalog.add(ADMIN, item)
    assert catalog.list() == [item]
    assert catalog.get("a1") == item


def test_update_replaces_fields_and_keeps_position(catalog):
    for iid in ["first", "second", "third"]:
        catalog.add(ADMIN, catalog.make(iid))

    changed = catalog.make("second", name="Renamed", duration=90.0)
    catalog.update(ADMIN, changed)

    assert catalog.ids() == ["first", "second", "third"]
    assert catalog.get("second") == changed


def test_delete_removes_item_and_later_ops_fail(catalog):
    catalog.add(ADMIN, catalog.make("a1"))
    catalog.add(ADMIN, catalog.make("a2"))

    catalog.delete(ADMIN, "a1")
    assert catalog.ids() == ["a2"]

    with pytest.raises(NotFound):
        catalog.update(ADMIN, catalog.make("a1"))
    with pytest.raises(NotFound):
        catalog.delete(ADMIN, "a1")
    with pytest.raises(NotFound):
        catalog.get("a1")


def test_readded_item_goes_to_the_end(catalog):
    catalog.add(ADMIN, catalog.make("a1"))
    catalog.add(ADMIN, catalog.make("a2"))
    catalog.delete(ADMIN, "a1")
    catalog.add(ADMIN, catalog.make("a1"))
    assert catalog.ids() == ["a2", "a1"]


def test_update_unknown_id_fails(catalog):
    with pytest.raises(NotFound):
        catalog.update(ADMIN, catalog.make("ghost"))
    assert catalog.list() == []


def test_duplicate_id_rejected(catalog):
    catalog.add(ADMIN, catalog.make("a1"))
    with pytest.raises(ValidationError, match="already exists"):
        catalog.add(ADMIN, catalog.make("a1", name="Other"))
    assert len(catalog.list()) == 1


@pytest.mark.parametrize("caller", [ALICE, ANONYMOUS])
def test_non_admin_mutations_denied(catalog, caller):
    original = catalog.make("a1")
    catalog.add(ADMIN, original)

    with pytest.raises(PermissionDenied):
        catalog.add(caller, catalog.make("a2"))
    with pytest.raises(PermissionDenied):
        catalog.update(caller, catalog.make("a1", name="Hijacked"))
    with pytest.raises(PermissionDenied):
        catalog.delete(caller, "a1")

    assert catalog.list() == [original]


def test_invalid_fields_rejected(catalog):
    bad_money = catalog.make("a1")
    setattr(bad_money, catalog.money, -1.0)
    with pytest.raises(ValidationError):
        catalog.add(ADMIN, bad_money)

    with pytest.raises(ValidationError):
        catalog.add(ADMIN, catalog.make("a1", duration=0.0))
    with pytest.raises(ValidationError):
        catalog.add(ADMIN, catalog.make("", name="No id"))
    with pytest.raises(ValidationError):
        catalog.add(ADMIN, catalog.make("a1", name=""))

    assert catalog.list() == []


def test_list_is_idempotent(catalog):
    catalog.add(ADMIN, catalog.make("a1"))
    catalog.add(ADMIN, catalog.make("a2"))
    assert catalog.list() == catalog.list()


def test_catalogs_are_independent(service):
    service.add_fitness_listing(ADMIN, listing("same-id"))
    service.add_membership_plan(ADMIN, plan("same-id"))
    service.delete_fitness_listing(ADMIN, "same-id")
    assert service.list_fitness_listings() == []
    assert [p.id for p in service.list_membership_plans()] == ["same-id"]


def test_from_dict_coerces_numbers():
    item = FitnessListing.from_dict({
        "id": "f1", "name": "Spin", "type_of_class": "spin",
        "location": "Online", "online": True, "cost": 12, "duration": 45,
    })
    assert item.cost == 12.0
    assert isinstance(item.duration, float)
    with pytest.raises(ValidationError, match="'price' must be a number"):
        MembershipPlan.from_dict({"id": "m1", "name": "Plus", "price": "free", "duration": 1})


@pytest.mark.parametrize("value", ["10", None, True, float("nan"), float("inf")])
def test_non_numeric_amounts_rejected(catalog, value):
    bad_money = catalog.make("a1")
    setattr(bad_money, catalog.money, value)
    with pytest.raises(ValidationError):
        catalog.add(ADMIN, bad_money)

    with pytest.raises(ValidationError):
        catalog.add(ADMIN, catalog.make("a1", duration=value))
    assert catalog.list() == []
