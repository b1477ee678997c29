#!/usr/bin/env python3
# tools/add_user.py
"""
Adds an API user to the data file.
Safe to run against a live store; writes a backup data.json.YYYYMMDDHHMMSS.bak first.
"""
from __future__ import annotations
import argparse
import secrets
import shutil
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signage import settings, storage  # noqa: E402
from signage.errors import NotFoundError  # noqa: E402

FEATURES = [
    "folder.add", "folder.modify",
    "dataset.add", "dataset.modify",
    "layout.add", "layout.modify",
]


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Add an API user to the signage data file")
    p.add_argument("user_name")
    p.add_argument("--api-key", help="defaults to a random token")
    p.add_argument("--super-admin", action="store_true")
    p.add_argument("--home-folder", type=int, default=settings.ROOT_FOLDER_ID)
    p.add_argument(
        "--feature", action="append", default=[], choices=FEATURES,
        help="repeat for several; ignored for super admins",
    )
    p.add_argument("--all-features", action="store_true")
    args = p.parse_args(argv)

    data = Path(settings.DATA_PATH)
    if data.exists():
        ts = time.strftime("%Y%m%d%H%M%S")
        backup = data.with_suffix(f".json.{ts}.bak")
        shutil.copy2(data, backup)
        print(f"Backup written to {backup}")

    api_key = args.api_key or secrets.token_urlsafe(24)
    try:
        user = storage.add_user(
            args.user_name,
            api_key=api_key,
            super_admin=args.super_admin,
            home_folder_id=args.home_folder,
            features=FEATURES if args.all_features else args.feature,
        )
    except (ValueError, NotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"OK. userId={user['userId']} apiKey={api_key}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
