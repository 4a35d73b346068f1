"""
Ledger 저장소

주문 생성/삭제, 사용자 삭제, 메모 수정.
모든 변경은 orders + users 를 하나의 트랜잭션으로 묶어 집계 불변식 유지:
    user.total_deposit    == sum(amount) of live deposit orders
    user.total_withdrawal == sum(amount) of live withdrawal orders
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import tzinfo
from decimal import Decimal
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping

import aiosqlite

from core.config.loader import Settings, get_settings
from core.ledger.errors import NotFoundError, TransactionError
from core.ledger.types import ZERO, Order, OrderRequest, OrderType, User
from core.utils.timezone import now_utc, parse_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

ORDER_COLUMNS = "id, user_id, type, amount, order_date, submit_time"
USER_COLUMNS = "user_id, register_time, total_deposit, total_withdrawal, note"


class LedgerStore:
    """Ledger 저장소

    호출 간 상태를 보관하지 않음 (모든 상태는 DB에 영속).

    Args:
        db: SQLite 어댑터
        tz: 주문일 해석 기준 시간대 (None이면 기본 업무 시간대)
    """

    def __init__(self, db: SQLiteAdapter, tz: tzinfo | None = None):
        self.db = db
        self.tz = tz

    @classmethod
    def from_settings(cls, db: SQLiteAdapter, settings: Settings | None = None) -> LedgerStore:
        """설정의 업무 시간대(timezone)를 사용하는 저장소 생성

        Args:
            db: SQLite 어댑터
            settings: 설정 (None이면 get_settings())
        """
        if settings is None:
            settings = get_settings()
        return cls(db, tz=settings.tzinfo)

    @asynccontextmanager
    async def _atomic(self, operation: str) -> AsyncIterator[None]:
        """원자적 트랜잭션 실행

        저장소 오류는 롤백 후 TransactionError로 변환.
        """
        try:
            async with self.db.transaction():
                yield
        except aiosqlite.Error as e:
            logger.error(
                f"Transaction rolled back: {operation}: {e}",
                extra={"operation": operation},
            )
            raise TransactionError(f"{operation} failed: {e}") from e

    async def add_order(self, request: OrderRequest | Mapping[str, Any]) -> Order:
        """주문 추가

        트랜잭션 내에서:
        1. 사용자 조회 (없으면 생성: register_time=now, 합계 0, 메모 "")
        2. 주문 유형에 맞는 합계에 금액 가산
        3. 사용자 저장 + 주문 저장

        Args:
            request: OrderRequest 또는 원시 dict (userId, type, amount, orderDate)

        Returns:
            저장된 주문 (id, submit_time 포함)

        Raises:
            ValidationError: 입력 값이 유효하지 않은 경우
            TransactionError: 커밋 실패 (부분 반영 없음)
        """
        if not isinstance(request, OrderRequest):
            request = OrderRequest.from_mapping(request, self.tz)

        now = now_utc()

        async with self._atomic("add_order"):
            user = await self._get_user(request.user_id)
            if user is None:
                user = User.new(request.user_id, register_time=now)

            user.apply_order(request.type, request.amount)
            await self._put_user(user)

            cursor = await self.db.execute(
                """
                INSERT INTO orders (user_id, type, amount, order_date, submit_time)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    request.user_id,
                    request.type.value,
                    str(request.amount),
                    request.order_date_ts,
                    now.isoformat(),
                ),
            )
            order_id = cursor.lastrowid

        order = Order(
            id=order_id,
            user_id=request.user_id,
            type=request.type,
            amount=request.amount,
            order_date=parse_timestamp(request.order_date_ts),
            submit_time=now,
        )

        logger.info(
            f"Order added: {order.id}",
            extra={
                "order_id": order.id,
                "user_id": order.user_id,
                "type": order.type.value,
                "amount": str(order.amount),
            },
        )
        return order

    async def delete_order(self, order_id: int) -> Order:
        """주문 삭제

        주문 금액을 해당 합계에서 차감 (0 미만은 0으로 고정).
        사용자 레코드가 없으면 (고아 주문) 집계 조정 없이 주문만 삭제.

        Args:
            order_id: 주문 ID

        Returns:
            삭제된 주문

        Raises:
            NotFoundError: 주문이 없는 경우 (아무 것도 쓰지 않음)
            TransactionError: 커밋 실패
        """
        async with self._atomic("delete_order"):
            order = await self._get_order(order_id)
            if order is None:
                raise NotFoundError("order does not exist")

            user = await self._get_user(order.user_id)
            if user is not None:
                clamped = user.revert_order(order.type, order.amount)
                if clamped:
                    logger.debug(
                        "User total clamped at zero",
                        extra={"user_id": user.user_id, "order_id": order.id},
                    )
                await self._put_user(user)
            else:
                logger.warning(
                    f"Orphaned order without user: {order.id}",
                    extra={"order_id": order.id, "user_id": order.user_id},
                )

            await self.db.execute("DELETE FROM orders WHERE id = ?", (order.id,))

        logger.info(
            f"Order deleted: {order.id}",
            extra={"order_id": order.id, "user_id": order.user_id},
        )
        return order

    async def delete_user(self, user_id: str) -> int:
        """사용자 및 해당 사용자의 모든 주문 삭제

        존재하지 않는 사용자는 아무 변경 없이 성공 (멱등).

        Returns:
            삭제된 주문 수
        """
        async with self._atomic("delete_user"):
            rows = await self.db.fetchall(
                "SELECT id FROM orders WHERE user_id = ?",
                (user_id,),
            )
            await self.db.executemany(
                "DELETE FROM orders WHERE id = ?",
                [(row[0],) for row in rows],
            )

            await self.db.execute("DELETE FROM users WHERE user_id = ?", (user_id,))

        logger.info(
            f"User deleted: {user_id}",
            extra={"user_id": user_id, "orders_deleted": len(rows)},
        )
        return len(rows)

    async def update_user_note(self, user_id: str, note: str) -> bool:
        """사용자 메모 수정 (합계는 변경하지 않음)

        존재하지 않는 사용자는 오류 없이 무시.

        Returns:
            수정되었으면 True, 사용자가 없으면 False
        """
        async with self._atomic("update_user_note"):
            user = await self._get_user(user_id)
            if user is None:
                return False

            user.note = note
            await self._put_user(user)

        logger.info("User note updated", extra={"user_id": user_id})
        return True

    async def reconcile_user(self, user_id: str) -> User | None:
        """사용자 합계를 현재 주문 기준으로 재계산하여 저장

        정합성 검사에서 불일치가 발견된 경우의 명시적 복구 수단.
        다른 변경 연산에서 자동으로 호출되지 않음.

        Returns:
            재계산된 사용자 (사용자가 없으면 None)

        Raises:
            TransactionError: 커밋 실패
        """
        async with self._atomic("reconcile_user"):
            user = await self._get_user(user_id)
            if user is None:
                return None

            rows = await self.db.fetchall(
                "SELECT type, amount FROM orders WHERE user_id = ?",
                (user_id,),
            )
            user.total_deposit = ZERO
            user.total_withdrawal = ZERO
            for order_type, amount in rows:
                user.apply_order(OrderType(order_type), Decimal(amount))

            await self._put_user(user)

        logger.info(
            f"User totals reconciled: {user_id}",
            extra={
                "user_id": user_id,
                "total_deposit": str(user.total_deposit),
                "total_withdrawal": str(user.total_withdrawal),
            },
        )
        return user

    # -------------------------------------------------------------------------
    # 트랜잭션 내부 헬퍼
    # -------------------------------------------------------------------------

    async def _get_order(self, order_id: int) -> Order | None:
        row = await self.db.fetchone(
            f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = ?",
            (order_id,),
        )
        return Order.from_row(row) if row else None

    async def _get_user(self, user_id: str) -> User | None:
        row = await self.db.fetchone(
            f"SELECT {USER_COLUMNS} FROM users WHERE user_id = ?",
            (user_id,),
        )
        return User.from_row(row) if row else None

    async def _put_user(self, user: User) -> None:
        """사용자 Upsert (register_time 은 최초 값 유지)"""
        await self.db.execute(
            """
            INSERT INTO users (user_id, register_time, total_deposit, total_withdrawal, note)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                total_deposit = excluded.total_deposit,
                total_withdrawal = excluded.total_withdrawal,
                note = excluded.note
            """,
            (
                user.user_id,
                user.register_time.isoformat(),
                str(user.total_deposit),
                str(user.total_withdrawal),
                user.note,
            ),
        )
