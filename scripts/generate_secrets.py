#!/usr/bin/env python3
"""Generate secure secrets for UTM Connect configuration."""

import secrets


def generate_all_secrets():
    """Generate the two JWT signing secrets. They are always distinct."""
    access_secret = secrets.token_urlsafe(48)
    refresh_secret = secrets.token_urlsafe(48)
    while refresh_secret == access_secret:
        refresh_secret = secrets.token_urlsafe(48)

    print("=" * 60)
    print("UTM Connect Secret Generator")
    print("=" * 60)
    print("\nCopy these values to your .env file:\n")

    print(f"JWT_SECRET={access_secret}")
    print(f"JWT_REFRESH_SECRET={refresh_secret}")

    print("\n" + "=" * 60)
    print("Keep these values secure and never commit them to git!")
    print("=" * 60)


if __name__ == "__main__":
    generate_all_secrets()
