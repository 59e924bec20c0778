"""
generate_hash.py
----------------
Print a bcrypt hash for ADMIN_PASSWORD_HASH (or any stored password).

Without an argument it hashes the demo admin password the portal has
always shipped with; pass your own password for any real deployment.

Usage:
    python generate_hash.py [password]
"""

import sys

from docportal.core.security import PasswordHasher

DEMO_ADMIN_PASSWORD = "ceasa123"


def main(argv: list[str]) -> None:
    password = argv[1] if len(argv) > 1 else DEMO_ADMIN_PASSWORD
    hashed = PasswordHasher(rounds=10).hash(password)
    print(f"Hash generated for '{password}': {hashed}")


if __name__ == "__main__":
    main(sys.argv)
