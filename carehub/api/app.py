"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from carehub.config import CareSettings, TOKEN_EXPIRY_HOURS
from carehub.database import init_engine
from carehub.service import CareService
from carehub.api.routes import register_routes


def create_app(service: CareService = None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    CORS(app)

    # ── Initialise shared resources ──────────────────────────────────
    if service is None:
        try:
            print("[init] Initializing database connection...")
            engine = init_engine()

            print("[init] Wiring care service...")
            settings = CareSettings.from_env()
            service = CareService.from_engine(engine, settings)
            if settings.bootstrap_admin_id is None:
                print("[WARN] CAREHUB_BOOTSTRAP_ADMIN is not set; no admin until one is assigned.",
                      file=sys.stderr)

            print("[init] ✓ API server ready")
        except Exception as e:
            print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
            traceback.print_exc()
            sys.exit(1)

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, service)

    return app


def describe_endpoints(app):
    """`METHODS /path` lines for every API route, sorted by path."""
    lines = []
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.endpoint == "static":
            continue
        methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
        lines.append(f"{methods:<16} {rule.rule}")
    return lines


def main():
    """Run the development server."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"
    settings = CareSettings.from_env()

    print("=" * 60)
    print("CareHub Core – records & consultations API")
    print("=" * 60)

    app = create_app()

    print(f"\n[server] Listening on http://{host}:{port} (debug={debug})")
    print(f"[server] Bearer tokens valid for {TOKEN_EXPIRY_HOURS} hours; no token = anonymous")
    print(f"[policy] Bootstrap admin: {settings.bootstrap_admin_id or '-'}")
    print(f"[policy] Patients may cancel: {settings.patient_may_cancel}")
    print(f"[policy] Reject duplicate bookings: {settings.reject_duplicate_consultations}")
    print("\nRoutes:")
    for line in describe_endpoints(app):
        print(f"  {line}")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
