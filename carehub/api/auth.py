"""
JWT identity helpers and middleware for the Flask API.

The identity provider signs bearer tokens whose `sub` claim is the caller
identity. No token means an anonymous caller; a bad token is rejected.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import jsonify, request

from carehub.config import SECRET_KEY, TOKEN_EXPIRY_HOURS
from carehub.models import ANONYMOUS


def generate_token(identity: str, expiry_hours: float = TOKEN_EXPIRY_HOURS,
                   secret_key: str = SECRET_KEY) -> str:
    """Generate a JWT token for a caller identity."""
    if not identity or identity == ANONYMOUS:
        raise ValueError("Tokens can only be issued for a real identity.")
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identity,
        "iat": now,
        "exp": now + timedelta(hours=expiry_hours),
    }
    return jwt.encode(payload, secret_key, algorithm="HS256")


def verify_token(token: str, secret_key: str = SECRET_KEY) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, secret_key, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def with_caller(f):
    """Decorator that resolves the caller identity onto `request.caller`."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None

        # Check Authorization header (Bearer token)
        if "Authorization" in request.headers:
            auth_header = request.headers["Authorization"]
            parts = auth_header.split(" ")
            if len(parts) != 2 or parts[0].lower() != "bearer":
                return jsonify({"error": "Invalid authorization header format"}), 401
            token = parts[1]

        if not token:
            request.caller = ANONYMOUS
            return f(*args, **kwargs)

        payload = verify_token(token)
        if not payload:
            return jsonify({"error": "Invalid or expired token"}), 401

        identity = payload.get("sub")
        if not isinstance(identity, str) or not identity or identity == ANONYMOUS:
            return jsonify({"error": "Token does not name a caller identity"}), 401

        request.caller = identity
        return f(*args, **kwargs)

    return decorated
