"""
CareService – one object exposing every operation of the core.

Each method takes the resolved caller identity first, mirroring the
request/response contract the presentation layer calls.
"""

from dataclasses import replace
from typing import List, Optional

from carehub.catalog import CatalogStore, fitness_catalog, membership_catalog
from carehub.config import CareSettings
from carehub.consultations import ConsultationLedger
from carehub.database import connection_lock, create_schema
from carehub.models import (
    Consultation,
    ConsultationRequest,
    ConsultationStatus,
    FitnessListing,
    MembershipPlan,
    PatientProfile,
    Provider,
    Role,
)
from carehub.profiles import ProfileStore, VIPEntitlementManager
from carehub.providers import ProviderDirectory
from carehub.rbac import RoleRegistry


class CareService:

    def __init__(self, engine, settings: Optional[CareSettings] = None):
        settings = settings or CareSettings()
        self.engine = engine
        self.settings = settings

        lock = connection_lock(engine)

        self.roles = RoleRegistry(
            engine, bootstrap_admin_id=settings.bootstrap_admin_id, lock=lock
        )
        self.guard = self.roles.guard
        self.profiles = ProfileStore(engine, self.guard, lock=lock)
        self.vip = VIPEntitlementManager(self.profiles, self.guard)
        self.providers = ProviderDirectory(engine, self.guard, lock=lock)
        self.fitness: CatalogStore = fitness_catalog(engine, self.guard, lock=lock)
        self.memberships: CatalogStore = membership_catalog(engine, self.guard, lock=lock)
        self.consultations = ConsultationLedger(
            engine,
            self.guard,
            self.providers,
            patient_may_cancel=settings.patient_may_cancel,
            reject_duplicates=settings.reject_duplicate_consultations,
            lock=lock,
        )

    @classmethod
    def from_engine(cls, engine, settings: Optional[CareSettings] = None) -> "CareService":
        """Create the schema on *engine* and wire a service around it."""
        create_schema(engine)
        return cls(engine, settings)

    # ── Roles ────────────────────────────────────────────────────────

    def get_caller_role(self, caller: str) -> Role:
        return self.roles.get_role(caller)

    def is_caller_admin(self, caller: str) -> bool:
        return self.roles.is_admin(caller)

    def assign_role(self, caller: str, target: str, role: Role) -> None:
        self.roles.assign_role(caller, target, role)

    # ── Profiles / VIP ───────────────────────────────────────────────

    def get_caller_profile(self, caller: str) -> Optional[PatientProfile]:
        return self.profiles.get_own(caller)

    def save_caller_profile(self, caller: str, profile: PatientProfile) -> PatientProfile:
        """Save *profile* as the caller's own, whatever owner_id it carries."""
        return self.profiles.save(caller, replace(profile, owner_id=caller))

    def get_patient_profile(self, caller: str) -> PatientProfile:
        return self.profiles.get_patient_profile(caller)

    def save_patient_profile(self, caller: str, profile: PatientProfile) -> PatientProfile:
        return self.profiles.save(caller, profile)

    def get_user_profile(self, caller: str, target: str) -> Optional[PatientProfile]:
        return self.profiles.get_by_identity(caller, target)

    def get_vip_status(self, caller: str) -> bool:
        return self.vip.get(caller)

    def set_vip_status(self, caller: str, patient_id: str, is_vip: bool) -> None:
        self.vip.set(caller, patient_id, is_vip)

    # ── Providers ────────────────────────────────────────────────────

    def add_provider(self, caller: str, provider: Provider) -> None:
        self.providers.add(caller, provider)

    def get_provider(self, provider_id: str) -> Provider:
        return self.providers.get(provider_id)

    def list_providers(self) -> List[Provider]:
        return self.providers.list()

    # ── Catalogs ─────────────────────────────────────────────────────

    def add_fitness_listing(self, caller: str, listing: FitnessListing) -> None:
        self.fitness.add(caller, listing)

    def update_fitness_listing(self, caller: str, listing: FitnessListing) -> None:
        self.fitness.update(caller, listing)

    def delete_fitness_listing(self, caller: str, listing_id: str) -> None:
        self.fitness.delete(caller, listing_id)

    def get_fitness_listing(self, listing_id: str) -> FitnessListing:
        return self.fitness.get(listing_id)

    def list_fitness_listings(self) -> List[FitnessListing]:
        return self.fitness.list()

    def add_membership_plan(self, caller: str, plan: MembershipPlan) -> None:
        self.memberships.add(caller, plan)

    def update_membership_plan(self, caller: str, plan: MembershipPlan) -> None:
        self.memberships.update(caller, plan)

    def delete_membership_plan(self, caller: str, plan_id: str) -> None:
        self.memberships.delete(caller, plan_id)

    def get_membership_plan(self, plan_id: str) -> MembershipPlan:
        return self.memberships.get(plan_id)

    def list_membership_plans(self) -> List[MembershipPlan]:
        return self.memberships.list()

    # ── Consultations ────────────────────────────────────────────────

    def request_consultation(self, caller: str, request: ConsultationRequest) -> str:
        return self.consultations.request(caller, request)

    def update_consultation_status(
        self, caller: str, consultation_id: str, new_status: ConsultationStatus
    ) -> None:
        self.consultations.update_status(caller, consultation_id, new_status)

    def get_consultation(self, caller: str, consultation_id: str) -> Consultation:
        return self.consultations.get(caller, consultation_id)

    def get_consultations(self, caller: str) -> List[Consultation]:
        return self.consultations.list_for_caller(caller)
