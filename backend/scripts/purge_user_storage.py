"""Delete every stored avatar original and thumbnail for one user.

Usage:
    uv run python scripts/purge_user_storage.py <user-id>
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging  # noqa: E402
from services.account_cleanup import purge_user_storage  # noqa: E402


def run(argv: list[str]) -> int:
    if len(argv) != 1 or not argv[0].strip():
        print("Usage: purge_user_storage.py <user-id>")
        return 2

    configure_logging()
    user_id = argv[0].strip()
    summary = purge_user_storage(user_id)
    print(
        f"Storage purge complete: user={user_id} deleted={summary.deleted} "
        f"batches={summary.batches} failed={len(summary.failed_keys)}"
    )
    return 1 if summary.failed_keys else 0


if __name__ == "__main__":
    raise SystemExit(run(sys.argv[1:]))
