#!/usr/bin/env python3
"""Ledger DB 상태 확인 스크립트

스키마 초기화 후 주문/사용자 수와 집계 정합성 검사 결과 출력.
--reconcile 지정 시 불일치 사용자의 합계를 주문 기준으로 재계산.
"""

import argparse
import asyncio
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger import (
    LedgerQuery,
    LedgerStore,
    check_consistency,
    get_schema_version,
    init_ledger_schema,
)
from core.logging import setup_logging


async def main(config_path: Path | None, reconcile: bool) -> int:
    settings = get_settings(config_path)
    setup_logging("check_db", console_level=settings.log_level)

    async with SQLiteAdapter(settings.db_path) as db:
        await init_ledger_schema(db)

        query = LedgerQuery(db)
        orders = await query.get_all_orders()
        users = await query.get_all_users()

        print(f"DB Path: {settings.db_path}")
        print(f"Schema version: {await get_schema_version(db)}")
        print(f"Total orders: {len(orders)}")
        print(f"Total users: {len(users)}")

        drifts = await check_consistency(db)
        print(f"\nDrift ({len(drifts)}):")
        for drift in drifts:
            print(f"  - [{drift.drift_kind}] {drift.user_id}: {drift.description}")

        if reconcile and drifts:
            store = LedgerStore.from_settings(db, settings)
            for drift in drifts:
                if drift.drift_kind == "totals":
                    await store.reconcile_user(drift.user_id)
                    print(f"  reconciled: {drift.user_id}")

    return 1 if drifts and not reconcile else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ledger DB 상태 확인")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="ledger.yaml 경로 (기본: config/ledger.yaml)",
    )
    parser.add_argument(
        "--reconcile",
        action="store_true",
        help="불일치 사용자의 합계를 주문 기준으로 재계산",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.config, args.reconcile)))
