"""
Domain dataclasses used across the application.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from carehub.errors import ValidationError

# Identity of an unauthenticated caller. Never owns a profile or booking.
ANONYMOUS = "anonymous"


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


class ConsultationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Capability(str, Enum):
    """Coarse permissions checked by the AuthorizationGuard."""
    AUTHENTICATED = "authenticated"
    MANAGE_ROLES = "manage_roles"
    MANAGE_PROVIDERS = "manage_providers"
    MANAGE_CATALOG = "manage_catalog"
    MANAGE_ENTITLEMENTS = "manage_entitlements"
    VIEW_PROFILES = "view_profiles"
    MANAGE_CONSULTATIONS = "manage_consultations"


# ── Field coercion ───────────────────────────────────────────────────

def _text(data: Dict[str, Any], key: str, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if value is None:
        raise ValidationError(f"'{key}' is required.")
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string.")
    return value


def _integer(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"'{key}' must be an integer.")
    return value


def _number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{key}' must be a number.")
    return float(value)


def _flag(data: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"'{key}' must be true or false.")
    return value


# ── Records ──────────────────────────────────────────────────────────

@dataclass
class PatientProfile:
    """Patient data owned by exactly one caller identity."""
    owner_id: str
    name: str
    age: int
    description: str = ""
    preferences: str = ""
    is_vip: bool = False       # only changed through the VIP entitlement

    @classmethod
    def from_dict(cls, data: Dict[str, Any], owner_id: Optional[str] = None) -> "PatientProfile":
        return cls(
            owner_id=owner_id if owner_id is not None else _text(data, "owner_id"),
            name=_text(data, "name"),
            age=_integer(data, "age"),
            description=_text(data, "description", ""),
            preferences=_text(data, "preferences", ""),
            is_vip=_flag(data, "is_vip"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Provider:
    """A care provider listed in the directory. Immutable once added."""
    id: str
    name: str
    specialization: str
    location: str
    online: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Provider":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            specialization=_text(data, "specialization"),
            location=_text(data, "location"),
            online=_flag(data, "online"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FitnessListing:
    id: str
    name: str
    type_of_class: str
    location: str
    online: bool
    cost: float
    duration: float            # minutes

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FitnessListing":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            type_of_class=_text(data, "type_of_class", ""),
            location=_text(data, "location", ""),
            online=_flag(data, "online"),
            cost=_number(data, "cost"),
            duration=_number(data, "duration"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MembershipPlan:
    id: str
    name: str
    description: str
    price: float
    duration: float            # months

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MembershipPlan":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            description=_text(data, "description", ""),
            price=_number(data, "price"),
            duration=_number(data, "duration"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ConsultationRequest:
    """What a patient submits when booking a consultation."""
    patient_id: str
    provider_id: str
    time: int                  # nanoseconds since the Unix epoch
    modality: str
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsultationRequest":
        return cls(
            patient_id=_text(data, "patient_id"),
            provider_id=_text(data, "provider_id"),
            time=_integer(data, "time"),
            modality=_text(data, "modality"),
            notes=_text(data, "notes", ""),
        )


@dataclass
class Consultation:
    id: str
    patient_id: str
    provider_id: str
    time: int
    modality: str
    notes: str
    status: ConsultationStatus

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def parse_role(value: Any) -> Role:
    """Turn a wire value into a Role, rejecting anything unknown."""
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unsupported role '{value}'.") from None


def parse_status(value: Any) -> ConsultationStatus:
    """Turn a wire value into a ConsultationStatus, rejecting anything unknown."""
    try:
        return ConsultationStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unsupported consultation status '{value}'.") from None
