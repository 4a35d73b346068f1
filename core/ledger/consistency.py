"""
집계 정합성 검사

users 의 합계와 실제 orders 합계를 비교하여 불일치(drift) 감지.
주문 삭제 시 0 하한 처리는 불일치를 숨길 수 있으므로 별도 검사로 드러냄.
복구(reconcile_user)는 명시적으로 호출할 때만 실행.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from core.ledger.store import USER_COLUMNS, LedgerStore
from core.ledger.types import EXACT, ZERO, OrderType, User

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class UserDrift:
    """사용자 집계 불일치 정보"""

    drift_kind: str  # totals, orphan
    user_id: str
    expected_deposit: Decimal  # 주문 합계 기준
    expected_withdrawal: Decimal
    actual_deposit: Decimal | None  # users 레코드 값 (orphan이면 None)
    actual_withdrawal: Decimal | None
    description: str


async def _sum_live_orders(db: SQLiteAdapter) -> dict[str, dict[OrderType, Decimal]]:
    rows = await db.fetchall("SELECT user_id, type, amount FROM orders")

    sums: dict[str, dict[OrderType, Decimal]] = defaultdict(
        lambda: {OrderType.DEPOSIT: ZERO, OrderType.WITHDRAWAL: ZERO}
    )
    for user_id, order_type, amount in rows:
        totals = sums[user_id]
        kind = OrderType(order_type)
        totals[kind] = EXACT.add(totals[kind], Decimal(amount))
    return sums


async def check_consistency(db: SQLiteAdapter) -> list[UserDrift]:
    """전체 사용자 집계 정합성 검사 (읽기 전용)

    Returns:
        불일치 목록 (정합하면 빈 리스트)
    """
    async with db.snapshot():
        sums = await _sum_live_orders(db)
        user_rows = await db.fetchall(
            f"SELECT {USER_COLUMNS} FROM users"
        )

    drifts: list[UserDrift] = []
    known_users: set[str] = set()

    for row in user_rows:
        user = User.from_row(row)
        known_users.add(user.user_id)

        expected = sums.get(user.user_id, {OrderType.DEPOSIT: ZERO, OrderType.WITHDRAWAL: ZERO})
        expected_deposit = expected[OrderType.DEPOSIT]
        expected_withdrawal = expected[OrderType.WITHDRAWAL]

        if (
            user.total_deposit != expected_deposit
            or user.total_withdrawal != expected_withdrawal
        ):
            drifts.append(UserDrift(
                drift_kind="totals",
                user_id=user.user_id,
                expected_deposit=expected_deposit,
                expected_withdrawal=expected_withdrawal,
                actual_deposit=user.total_deposit,
                actual_withdrawal=user.total_withdrawal,
                description=(
                    f"Totals mismatch: deposit {user.total_deposit} != {expected_deposit}, "
                    f"withdrawal {user.total_withdrawal} != {expected_withdrawal}"
                ),
            ))

    # 사용자 레코드 없이 남은 주문
    for user_id in sorted(set(sums) - known_users):
        expected = sums[user_id]
        drifts.append(UserDrift(
            drift_kind="orphan",
            user_id=user_id,
            expected_deposit=expected[OrderType.DEPOSIT],
            expected_withdrawal=expected[OrderType.WITHDRAWAL],
            actual_deposit=None,
            actual_withdrawal=None,
            description=f"Orders reference missing user: {user_id}",
        ))

    if drifts:
        logger.warning(
            f"Ledger drift detected: {len(drifts)} user(s)",
            extra={"drift_count": len(drifts)},
        )
    return drifts


async def reconcile_user(db: SQLiteAdapter, user_id: str) -> User | None:
    """사용자 합계를 현재 주문 기준으로 재계산하여 저장

    LedgerStore.reconcile_user 의 함수형 진입점.
    """
    return await LedgerStore(db).reconcile_user(user_id)
