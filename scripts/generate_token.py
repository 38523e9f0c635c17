#!/usr/bin/env python3
"""
Mint bearer tokens for caller identities, or a fresh signing secret.
Stands in for the identity provider when operating the API by hand.

Usage:
    python scripts/generate_token.py <identity> [<identity> ...] [--hours N]
    python scripts/generate_token.py --new-secret
"""

import argparse
import secrets

from carehub.api.auth import generate_token
from carehub.config import TOKEN_EXPIRY_HOURS


def main():
    parser = argparse.ArgumentParser(description="Mint CareHub bearer tokens.")
    parser.add_argument("identities", nargs="*", help="caller identities to mint tokens for")
    parser.add_argument("--hours", type=float, default=TOKEN_EXPIRY_HOURS,
                        help=f"token lifetime in hours (default {TOKEN_EXPIRY_HOURS})")
    parser.add_argument("--new-secret", action="store_true",
                        help="print a new JWT_SECRET_KEY for the .env file instead")
    args = parser.parse_args()

    print("=" * 70)
    print("CareHub Token Generator")
    print("=" * 70)
    print()

    if args.new_secret:
        print(f"JWT_SECRET_KEY={secrets.token_hex(32)}")
        print("\nCopy the line above to your .env file (and the identity provider's).")
        return

    if not args.identities:
        parser.error("give at least one identity, or --new-secret")

    for identity in args.identities:
        token = generate_token(identity, expiry_hours=args.hours)
        print(f"{identity}:")
        print(f"  {token}")
        print()

    print("=" * 70)
    print("Send as:  Authorization: Bearer <token>")
    print("Set CAREHUB_BOOTSTRAP_ADMIN to one of these identities to make it admin.")
    print("=" * 70)


if __name__ == "__main__":
    main()
