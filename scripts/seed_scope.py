"""
Seed Scope — demo renovation line items for 126 Colby St.

Usage:
    python scripts/seed_scope.py              # Uses development DB
    python scripts/seed_scope.py --env prod   # Uses production DB

This script is idempotent — safe to run multiple times.
"""

import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scopebid import create_app
from scopebid.services.seed_service import SCOPE_DATA, seed_scope_items


def main():
    parser = argparse.ArgumentParser(description="Seed demo renovation scope items")
    parser.add_argument("--env", default="development", help="App environment")
    args = parser.parse_args()

    env = "production" if args.env == "prod" else args.env
    app = create_app(env)
    with app.app_context():
        created = seed_scope_items()
        print(f"✅ Scope items: {created} created, {len(SCOPE_DATA) - created} already present")


if __name__ == "__main__":
    main()
