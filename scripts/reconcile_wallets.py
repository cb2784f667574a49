#!/usr/bin/env python3
"""
Replay the ledger and compare it with stored wallet balances.

Example:
    python scripts/reconcile_wallets.py
    python scripts/reconcile_wallets.py --owner 1 --owner 2

Exits with status 1 when any wallet drifted from its ledger.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional

from wallet_ledger.core.config import get_settings
from wallet_ledger.core.container import build_container
from wallet_ledger.core.logging_config import configure_logging
from wallet_ledger.infrastructure.database.session import dispose_engine
from wallet_ledger.modules.wallets import WalletReconciliation


def format_report(report: WalletReconciliation) -> str:
    marker = "ok" if report.is_consistent else "DRIFT"
    return (
        f"[{marker}] {report.owner_id}: stored={report.stored_balance} "
        f"ledger={report.replayed_balance} drift={report.drift} "
        f"transactions={report.transaction_count}"
    )


async def reconcile(owner_ids: Optional[list[str]]) -> int:
    settings = get_settings()
    configure_logging(settings)
    container = build_container(settings)
    try:
        owners = owner_ids or await container.payments.list_wallet_owners()
        if not owners:
            print("[done] no wallets to reconcile")
            return 0

        drifted = 0
        for owner_id in owners:
            report = await container.payments.reconcile_wallet(owner_id)
            print(format_report(report))
            if not report.is_consistent:
                drifted += 1
    finally:
        await dispose_engine()

    print(f"[done] {len(owners)} wallet(s) checked, {drifted} drifted")
    return 1 if drifted else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile wallet balances against the ledger")
    parser.add_argument(
        "--owner",
        action="append",
        dest="owners",
        help="Owner id to check (repeatable); defaults to every wallet",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(reconcile(args.owners)))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit("aborted by user")
