#!/usr/bin/env python3
"""
Seed demo providers, fitness listings and membership plans.
Uses DB_URI and CAREHUB_BOOTSTRAP_ADMIN from the environment / .env file.
"""

import sys

from carehub.config import CareSettings
from carehub.database import init_engine
from carehub.errors import CareError
from carehub.seed import seed_demo_data
from carehub.service import CareService


def main():
    settings = CareSettings.from_env()
    if settings.bootstrap_admin_id is None:
        print("ERROR: set CAREHUB_BOOTSTRAP_ADMIN so the seeder can act as admin.", file=sys.stderr)
        sys.exit(1)

    engine = init_engine()
    service = CareService.from_engine(engine, settings)
    try:
        counts = seed_demo_data(service, settings.bootstrap_admin_id)
    except CareError as e:
        print(f"ERROR: seeding failed: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"[seed] Done: {counts}")


if __name__ == "__main__":
    main()
