"""
Ledger 스키마 초기화

orders / users 테이블과 보조 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 여러 번 호출해도 안전하게 동작.
스키마 버전은 PRAGMA user_version 으로 관리.
"""

import logging
from typing import TYPE_CHECKING

from core.constants import Defaults

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


# 보조 인덱스 (모두 non-unique)
ORDER_INDEXES: dict[str, str] = {
    "ix_orders_user_id": "user_id",
    "ix_orders_submit_time": "submit_time",
    "ix_orders_order_date": "order_date",
}

USER_INDEXES: dict[str, str] = {
    "ix_users_register_time": "register_time",
}


class SchemaVersionError(Exception):
    """DB 스키마 버전이 코드보다 높은 경우"""

    pass


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: 연결된 SQLiteAdapter

    Raises:
        SchemaVersionError: DB 버전이 지원 버전보다 높은 경우
    """
    version = await get_schema_version(db)
    if version > Defaults.SCHEMA_VERSION:
        raise SchemaVersionError(
            f"Unsupported schema version: {version} "
            f"(supported: {Defaults.SCHEMA_VERSION})"
        )

    async with db.transaction():
        await _create_tables(db)
        await _create_indexes(db)
        await db.execute(f"PRAGMA user_version = {Defaults.SCHEMA_VERSION}")

    logger.info(
        "Ledger 스키마 초기화 완료",
        extra={"schema_version": Defaults.SCHEMA_VERSION},
    )


async def get_schema_version(db: "SQLiteAdapter") -> int:
    """현재 DB 스키마 버전 조회 (미초기화 DB는 0)"""
    row = await db.fetchone("PRAGMA user_version")
    return int(row[0]) if row else 0


async def _create_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""

    # orders 테이블 (AUTOINCREMENT: id 재사용 금지)
    # user_id 는 FK 제약 없음 (참조 무결성은 LedgerStore가 보장)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS orders (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id          TEXT NOT NULL,
            type             TEXT NOT NULL CHECK (type IN ('deposit', 'withdrawal')),
            amount           TEXT NOT NULL,
            order_date       TEXT NOT NULL,
            submit_time      TEXT NOT NULL
        )
    """)

    # users 테이블 (집계)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id          TEXT PRIMARY KEY,
            register_time    TEXT NOT NULL,
            total_deposit    TEXT NOT NULL DEFAULT '0',
            total_withdrawal TEXT NOT NULL DEFAULT '0',
            note             TEXT NOT NULL DEFAULT ''
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    """보조 인덱스 생성"""
    for index_name, column in ORDER_INDEXES.items():
        await db.execute(
            f"CREATE INDEX IF NOT EXISTS {index_name} ON orders({column})"
        )

    for index_name, column in USER_INDEXES.items():
        await db.execute(
            f"CREATE INDEX IF NOT EXISTS {index_name} ON users({column})"
        )
