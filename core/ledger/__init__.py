"""
입출금 주문 Ledger

사용자별 입금/출금 주문을 기록하고 사용자별 누적 합계를 주문과 항상 일치하게 유지.
모든 변경은 orders + users 를 하나의 원자적 트랜잭션으로 처리.

사용 예시:
```python
from adapters.db import SQLiteAdapter
from core.ledger import LedgerQuery, LedgerStore, init_ledger_schema

async with SQLiteAdapter(db_path) as db:
    await init_ledger_schema(db)
    store = LedgerStore(db)
    query = LedgerQuery(db)

    order = await store.add_order({
        "userId": "u1",
        "type": "deposit",
        "amount": "100.50",
        "orderDate": "2024-03-15",
    })
    await store.update_user_note("u1", "VIP")

    march = await query.get_monthly_orders("2024-03")
    users = await query.get_all_users()

    await store.delete_order(order.id)
    await store.delete_user("u1")
```
"""

from core.ledger.consistency import UserDrift, check_consistency, reconcile_user
from core.ledger.errors import (
    LedgerError,
    NotFoundError,
    TransactionError,
    ValidationError,
)
from core.ledger.query import LedgerQuery
from core.ledger.schema import SchemaVersionError, get_schema_version, init_ledger_schema
from core.ledger.store import LedgerStore
from core.ledger.types import Order, OrderRequest, OrderType, User

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "LedgerQuery",
    # 타입
    "Order",
    "OrderRequest",
    "OrderType",
    "User",
    "UserDrift",
    # 예외
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "TransactionError",
    "SchemaVersionError",
    # 스키마 / 정합성
    "init_ledger_schema",
    "get_schema_version",
    "check_consistency",
    "reconcile_user",
]
