"""
Centralised configuration constants and environment helpers.
"""

import os
import sys
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# ── Validation limits ────────────────────────────────────────────────
MAX_PROFILE_AGE = 130

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = int(os.getenv("TOKEN_EXPIRY_HOURS", "24"))


def env_flag(name: str, default: bool = False) -> bool:
    """Interpret an environment variable as a boolean switch."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class CareSettings:
    """Policy switches handed to the service at construction time."""
    # Identity that resolves to admin until an explicit role is assigned.
    # None means no admin exists until one is granted out of band.
    bootstrap_admin_id: Optional[str] = None
    # Consultation status changes are admin-only unless this is on.
    patient_may_cancel: bool = False
    # Reject a second live booking for the same patient, provider and time.
    reject_duplicate_consultations: bool = False

    @classmethod
    def from_env(cls) -> "CareSettings":
        return cls(
            bootstrap_admin_id=os.getenv("CAREHUB_BOOTSTRAP_ADMIN") or None,
            patient_may_cancel=env_flag("CAREHUB_PATIENT_MAY_CANCEL"),
            reject_duplicate_consultations=env_flag("CAREHUB_REJECT_DUPLICATE_CONSULTATIONS"),
        )


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
