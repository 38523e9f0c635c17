"""
Shared fixtures: every test gets its own in-memory database.
"""

import pytest

from carehub.config import CareSettings
from carehub.database import build_engine
from carehub.models import PatientProfile, Provider
from carehub.service import CareService

ADMIN = "admin-1"
ALICE = "user-alice"
BOB = "user-bob"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def service(engine):
    return CareService.from_engine(engine, CareSettings(bootstrap_admin_id=ADMIN))


@pytest.fixture
def provider(service):
    p = Provider(id="p1", name="Dr. A", specialization="nutrition", location="NYC", online=True)
    service.add_provider(ADMIN, p)
    return p


def make_profile(owner_id, name="Alice", age=34, is_vip=False):
    return PatientProfile(
        owner_id=owner_id,
        name=name,
        age=age,
        description="Runner",
        preferences="Vegetarian",
        is_vip=is_vip,
    )
