"""
Demo data generator: providers, fitness listings and membership plans.

Everything is written through CareService as an admin identity, so the
seeded records go through the same validation and RBAC checks as real calls.
"""

import random
from typing import Dict

from faker import Faker

from carehub.models import FitnessListing, MembershipPlan, Provider
from carehub.service import CareService

NUM_PROVIDERS = 8
NUM_FITNESS_LISTINGS = 10
NUM_MEMBERSHIP_PLANS = 3

SPECIALIZATIONS = [
    "nutrition", "cardiology", "physiotherapy", "sports medicine",
    "endocrinology", "mental health", "dermatology", "family medicine",
]
CLASS_TYPES = ["yoga", "pilates", "hiit", "spin", "strength", "boxing", "swim"]
PLAN_TIERS = [
    ("Basic", "Directory access and online booking.", 19.0, 1),
    ("Plus", "Priority booking and fitness class discounts.", 99.0, 6),
    ("VIP", "Dedicated care coordinator and unlimited classes.", 299.0, 12),
]


def random_bool(p_true=0.5):
    return random.random() < p_true


def fake_provider(fake: Faker, n: int) -> Provider:
    return Provider(
        id=f"prov-{n:03d}",
        name=f"Dr. {fake.first_name()} {fake.last_name()}",
        specialization=random.choice(SPECIALIZATIONS),
        location=fake.city(),
        online=random_bool(0.6),
    )


def fake_fitness_listing(fake: Faker, n: int) -> FitnessListing:
    class_type = random.choice(CLASS_TYPES)
    online = random_bool(0.3)
    return FitnessListing(
        id=f"fit-{n:03d}",
        name=f"{fake.color_name()} {class_type.title()}",
        type_of_class=class_type,
        location="Online" if online else fake.city(),
        online=online,
        cost=round(random.uniform(5, 40), 2),
        duration=float(random.choice([30, 45, 60, 75, 90])),
    )


def fake_membership_plan(n: int) -> MembershipPlan:
    name, description, price, months = PLAN_TIERS[n % len(PLAN_TIERS)]
    return MembershipPlan(
        id=f"plan-{name.lower()}" if n < len(PLAN_TIERS) else f"plan-{name.lower()}-{n}",
        name=name,
        description=description,
        price=price,
        duration=float(months),
    )


def seed_demo_data(
    service: CareService,
    admin_id: str,
    num_providers: int = NUM_PROVIDERS,
    num_listings: int = NUM_FITNESS_LISTINGS,
    num_plans: int = NUM_MEMBERSHIP_PLANS,
    seed: int = 42,
) -> Dict[str, int]:
    """Populate the directories and catalogs; returns how many rows were added."""
    fake = Faker()
    random.seed(seed)
    Faker.seed(seed)

    for n in range(1, num_providers + 1):
        service.add_provider(admin_id, fake_provider(fake, n))
    print(f"[seed] Added {num_providers} providers.")

    for n in range(1, num_listings + 1):
        service.add_fitness_listing(admin_id, fake_fitness_listing(fake, n))
    print(f"[seed] Added {num_listings} fitness listings.")

    for n in range(num_plans):
        service.add_membership_plan(admin_id, fake_membership_plan(n))
    print(f"[seed] Added {num_plans} membership plans.")

    return {
        "providers": num_providers,
        "fitness_listings": num_listings,
        "membership_plans": num_plans,
    }
