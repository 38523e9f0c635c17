"""
Flask route handlers for the REST API.
"""

import sys
import traceback

from flask import jsonify, request
from sqlalchemy import text

from carehub.api.auth import with_caller
from carehub.errors import (
    CareError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from carehub.models import (
    ConsultationRequest,
    FitnessListing,
    MembershipPlan,
    PatientProfile,
    Provider,
    parse_role,
    parse_status,
)

ERROR_STATUS = {
    ValidationError: 400,
    PermissionDenied: 403,
    NotFound: 404,
    InvalidTransition: 409,
}


def _json_body() -> dict:
    """Return the JSON object sent with the request, or raise ValidationError."""
    if not request.is_json:
        raise ValidationError("Content-Type must be application/json")
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _profile_json(profile):
    return profile.to_dict() if profile is not None else None


def register_routes(app, service):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "CareHub Core API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "session": "/api/auth/session",
                "roles": "/api/roles/me",
                "profile": "/api/profile",
                "vip": "/api/vip",
                "providers": "/api/providers",
                "fitness": "/api/fitness",
                "memberships": "/api/memberships",
                "consultations": "/api/consultations",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"database": False}
        try:
            with service.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            print(f"[WARN] Health check failed: {e}", file=sys.stderr)

        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
        }), 200 if all_healthy else 503

    # ── Session / roles ──────────────────────────────────────────────

    @app.route("/api/auth/session", methods=["GET"])
    @with_caller
    def get_session():
        caller = request.caller
        role = service.get_caller_role(caller)
        return jsonify({
            "identity": caller,
            "role": role.value,
            "is_admin": service.is_caller_admin(caller),
            "policy": service.guard.policy_for(caller).notes,
        }), 200

    @app.route("/api/roles/me", methods=["GET"])
    @with_caller
    def get_caller_role():
        return jsonify({"role": service.get_caller_role(request.caller).value}), 200

    @app.route("/api/roles/me/admin", methods=["GET"])
    @with_caller
    def is_caller_admin():
        return jsonify({"is_admin": service.is_caller_admin(request.caller)}), 200

    @app.route("/api/roles/<identity>", methods=["PUT"])
    @with_caller
    def assign_role(identity):
        role = parse_role(_json_body().get("role"))
        service.assign_role(request.caller, identity, role)
        return jsonify({"success": True, "identity": identity, "role": role.value}), 200

    # ── Profiles / VIP ───────────────────────────────────────────────

    @app.route("/api/profile", methods=["GET"])
    @with_caller
    def get_caller_profile():
        profile = service.get_caller_profile(request.caller)
        return jsonify({"profile": _profile_json(profile)}), 200

    @app.route("/api/profile", methods=["PUT"])
    @with_caller
    def save_caller_profile():
        profile = PatientProfile.from_dict(_json_body(), owner_id=request.caller)
        saved = service.save_caller_profile(request.caller, profile)
        return jsonify({"success": True, "profile": saved.to_dict()}), 200

    @app.route("/api/patient-profile", methods=["GET"])
    @with_caller
    def get_patient_profile():
        profile = service.get_patient_profile(request.caller)
        return jsonify({"profile": profile.to_dict()}), 200

    @app.route("/api/patient-profile", methods=["PUT"])
    @with_caller
    def save_patient_profile():
        profile = PatientProfile.from_dict(_json_body())
        saved = service.save_patient_profile(request.caller, profile)
        return jsonify({"success": True, "profile": saved.to_dict()}), 200

    @app.route("/api/users/<identity>/profile", methods=["GET"])
    @with_caller
    def get_user_profile(identity):
        profile = service.get_user_profile(request.caller, identity)
        return jsonify({"profile": _profile_json(profile)}), 200

    @app.route("/api/vip", methods=["GET"])
    @with_caller
    def get_vip_status():
        return jsonify({"is_vip": service.get_vip_status(request.caller)}), 200

    @app.route("/api/vip/<identity>", methods=["PUT"])
    @with_caller
    def set_vip_status(identity):
        is_vip = _json_body().get("is_vip")
        service.set_vip_status(request.caller, identity, is_vip)
        return jsonify({"success": True, "identity": identity, "is_vip": is_vip}), 200

    # ── Providers ────────────────────────────────────────────────────

    @app.route("/api/providers", methods=["GET"])
    def list_providers():
        return jsonify({"providers": [p.to_dict() for p in service.list_providers()]}), 200

    @app.route("/api/providers", methods=["POST"])
    @with_caller
    def add_provider():
        provider = Provider.from_dict(_json_body())
        service.add_provider(request.caller, provider)
        return jsonify({"success": True, "id": provider.id}), 201

    @app.route("/api/providers/<provider_id>", methods=["GET"])
    def get_provider(provider_id):
        return jsonify({"provider": service.get_provider(provider_id).to_dict()}), 200

    # ── Fitness listings ─────────────────────────────────────────────

    @app.route("/api/fitness", methods=["GET"])
    def list_fitness_listings():
        listings = service.list_fitness_listings()
        return jsonify({"listings": [item.to_dict() for item in listings]}), 200

    @app.route("/api/fitness", methods=["POST"])
    @with_caller
    def add_fitness_listing():
        listing = FitnessListing.from_dict(_json_body())
        service.add_fitness_listing(request.caller, listing)
        return jsonify({"success": True, "id": listing.id}), 201

    @app.route("/api/fitness/<listing_id>", methods=["GET"])
    def get_fitness_listing(listing_id):
        return jsonify({"listing": service.get_fitness_listing(listing_id).to_dict()}), 200

    @app.route("/api/fitness/<listing_id>", methods=["PUT"])
    @with_caller
    def update_fitness_listing(listing_id):
        listing = FitnessListing.from_dict(dict(_json_body(), id=listing_id))
        service.update_fitness_listing(request.caller, listing)
        return jsonify({"success": True, "id": listing_id}), 200

    @app.route("/api/fitness/<listing_id>", methods=["DELETE"])
    @with_caller
    def delete_fitness_listing(listing_id):
        service.delete_fitness_listing(request.caller, listing_id)
        return jsonify({"success": True, "id": listing_id}), 200

    # ── Membership plans ─────────────────────────────────────────────

    @app.route("/api/memberships", methods=["GET"])
    def list_membership_plans():
        plans = service.list_membership_plans()
        return jsonify({"plans": [plan.to_dict() for plan in plans]}), 200

    @app.route("/api/memberships", methods=["POST"])
    @with_caller
    def add_membership_plan():
        plan = MembershipPlan.from_dict(_json_body())
        service.add_membership_plan(request.caller, plan)
        return jsonify({"success": True, "id": plan.id}), 201

    @app.route("/api/memberships/<plan_id>", methods=["GET"])
    def get_membership_plan(plan_id):
        return jsonify({"plan": service.get_membership_plan(plan_id).to_dict()}), 200

    @app.route("/api/memberships/<plan_id>", methods=["PUT"])
    @with_caller
    def update_membership_plan(plan_id):
        plan = MembershipPlan.from_dict(dict(_json_body(), id=plan_id))
        service.update_membership_plan(request.caller, plan)
        return jsonify({"success": True, "id": plan_id}), 200

    @app.route("/api/memberships/<plan_id>", methods=["DELETE"])
    @with_caller
    def delete_membership_plan(plan_id):
        service.delete_membership_plan(request.caller, plan_id)
        return jsonify({"success": True, "id": plan_id}), 200

    # ── Consultations ────────────────────────────────────────────────

    @app.route("/api/consultations", methods=["GET"])
    @with_caller
    def get_consultations():
        records = service.get_consultations(request.caller)
        return jsonify({"consultations": [c.to_dict() for c in records]}), 200

    @app.route("/api/consultations", methods=["POST"])
    @with_caller
    def request_consultation():
        req = ConsultationRequest.from_dict(_json_body())
        consultation_id = service.request_consultation(request.caller, req)
        return jsonify({"success": True, "id": consultation_id}), 201

    @app.route("/api/consultations/<consultation_id>", methods=["GET"])
    @with_caller
    def get_consultation(consultation_id):
        consultation = service.get_consultation(request.caller, consultation_id)
        return jsonify({"consultation": consultation.to_dict()}), 200

    @app.route("/api/consultations/<consultation_id>/status", methods=["PUT"])
    @with_caller
    def update_consultation_status(consultation_id):
        status = parse_status(_json_body().get("status"))
        service.update_consultation_status(request.caller, consultation_id, status)
        return jsonify({"success": True, "id": consultation_id, "status": status.value}), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(CareError)
    def care_error(e):
        status = ERROR_STATUS.get(type(e), 400)
        return jsonify({"error": e.kind, "message": str(e)}), status

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        original = getattr(e, "original_exception", None) or e
        print(f"[ERROR] Unhandled error: {original}", file=sys.stderr)
        traceback.print_exception(type(original), original, original.__traceback__)
        return jsonify({"error": "Internal server error", "message": str(original)}), 500
