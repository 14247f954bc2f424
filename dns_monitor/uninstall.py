"""
DNS Monitor: Uninstall cleanup. Drops the snapshot and record tables.

Usage:
    python -m dns_monitor.uninstall --yes
    dns-monitor-uninstall --yes

Uses DNS_MONITOR_DATABASE_URL like the service does.
"""

import argparse
from typing import List, Optional

from dns_monitor.database import db_url, _mask_url, drop_tables, engine
from dns_monitor.models.snapshot_models import RECORD_TABLE, SNAPSHOT_TABLE


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dns-monitor-uninstall",
        description=f"Drop {SNAPSHOT_TABLE} and {RECORD_TABLE}, deleting all DNS history.",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deletion. Without it nothing is dropped.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if not args.yes:
        print(f"Would drop {SNAPSHOT_TABLE} and {RECORD_TABLE} on {_mask_url(db_url)}.")
        print("Re-run with --yes to confirm.")
        return 1

    drop_tables(engine)
    print(f"Dropped {SNAPSHOT_TABLE} and {RECORD_TABLE}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
