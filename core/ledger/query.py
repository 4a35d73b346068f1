"""
Ledger 조회

보조 인덱스를 이용한 읽기 전용 조회.
모든 조회는 스냅샷 안에서 실행되어 커밋된 상태만 반환.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from core.ledger.errors import ValidationError
from core.ledger.store import ORDER_COLUMNS, USER_COLUMNS
from core.ledger.types import Order, User
from core.utils.timezone import date_to_timestamp, month_bounds, parse_year_month

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class LedgerQuery:
    """Ledger 조회

    결과 순서는 보장하지 않음 (페이지네이션 없음, 소규모 데이터 전제).

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_monthly_orders(
        self,
        year_month: str | date | tuple[int, int],
    ) -> list[Order]:
        """월별 주문 조회

        order_date 인덱스에 [월 첫날, 월 마지막 날] 범위 스캔 (양 끝 포함).

        Args:
            year_month: "YYYY-MM", 해당 월의 date, 또는 (year, month)

        Raises:
            ValidationError: 연월 형식 오류
        """
        try:
            year, month = parse_year_month(year_month)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid year-month: {year_month!r}") from e

        first_day, last_day = month_bounds(year, month)

        async with self.db.snapshot():
            rows = await self.db.fetchall(
                f"""
                SELECT {ORDER_COLUMNS}
                FROM orders INDEXED BY ix_orders_order_date
                WHERE order_date BETWEEN ? AND ?
                """,
                (date_to_timestamp(first_day), date_to_timestamp(last_day)),
            )

        logger.debug(
            f"Monthly orders: {year:04d}-{month:02d} ({len(rows)})",
            extra={"year": year, "month": month, "count": len(rows)},
        )
        return [Order.from_row(row) for row in rows]

    async def get_all_orders(self) -> list[Order]:
        """전체 주문 조회"""
        async with self.db.snapshot():
            rows = await self.db.fetchall(
                f"SELECT {ORDER_COLUMNS} FROM orders ORDER BY id"
            )
        return [Order.from_row(row) for row in rows]

    async def get_all_users(self) -> list[User]:
        """전체 사용자 조회"""
        async with self.db.snapshot():
            rows = await self.db.fetchall(
                f"SELECT {USER_COLUMNS} FROM users ORDER BY register_time"
            )
        return [User.from_row(row) for row in rows]

    async def get_user_orders(self, user_id: str) -> list[Order]:
        """사용자별 주문 조회 (user_id 인덱스)"""
        async with self.db.snapshot():
            rows = await self.db.fetchall(
                f"""
                SELECT {ORDER_COLUMNS}
                FROM orders INDEXED BY ix_orders_user_id
                WHERE user_id = ?
                """,
                (user_id,),
            )
        return [Order.from_row(row) for row in rows]

    async def get_order(self, order_id: int) -> Order | None:
        """주문 단건 조회 (없으면 None)"""
        async with self.db.snapshot():
            row = await self.db.fetchone(
                f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = ?",
                (order_id,),
            )
        return Order.from_row(row) if row else None

    async def get_user(self, user_id: str) -> User | None:
        """사용자 단건 조회 (없으면 None)"""
        async with self.db.snapshot():
            row = await self.db.fetchone(
                f"SELECT {USER_COLUMNS} FROM users WHERE user_id = ?",
                (user_id,),
            )
        return User.from_row(row) if row else None
