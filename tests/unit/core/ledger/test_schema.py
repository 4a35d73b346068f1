"""
Ledger 스키마 초기화 테스트
"""

from pathlib import Path

import aiosqlite
import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.ledger.schema import (
    ORDER_INDEXES,
    USER_INDEXES,
    SchemaVersionError,
    get_schema_version,
    init_ledger_schema,
)


class TestInitLedgerSchema:
    """init_ledger_schema 테스트"""

    @pytest.mark.asyncio
    async def test_creates_tables_and_indexes(self, tmp_path: Path) -> None:
        """테이블 + 보조 인덱스 생성"""
        async with SQLiteAdapter(tmp_path / "schema.db") as db:
            await init_ledger_schema(db)

            assert await db.table_exists("orders") is True
            assert await db.table_exists("users") is True
            for index_name in [*ORDER_INDEXES, *USER_INDEXES]:
                assert await db.index_exists(index_name) is True

    @pytest.mark.asyncio
    async def test_idempotent(self, tmp_path: Path) -> None:
        """여러 번 실행해도 에러 없음"""
        async with SQLiteAdapter(tmp_path / "schema.db") as db:
            await init_ledger_schema(db)
            await init_ledger_schema(db)

            assert await get_schema_version(db) == Defaults.SCHEMA_VERSION

    @pytest.mark.asyncio
    async def test_fresh_db_version_zero(self, tmp_path: Path) -> None:
        async with SQLiteAdapter(tmp_path / "fresh.db") as db:
            assert await get_schema_version(db) == 0

    @pytest.mark.asyncio
    async def test_newer_version_rejected(self, tmp_path: Path) -> None:
        """코드보다 높은 스키마 버전 거부"""
        async with SQLiteAdapter(tmp_path / "future.db") as db:
            await db.execute(f"PRAGMA user_version = {Defaults.SCHEMA_VERSION + 1}")

            with pytest.raises(SchemaVersionError):
                await init_ledger_schema(db)

    @pytest.mark.asyncio
    async def test_orders_columns(self, db: SQLiteAdapter) -> None:
        """orders 스키마 확인"""
        columns = {c["name"]: c for c in await db.get_table_info("orders")}

        assert set(columns) == {"id", "user_id", "type", "amount", "order_date", "submit_time"}
        assert columns["id"]["pk"] is True

    @pytest.mark.asyncio
    async def test_users_columns(self, db: SQLiteAdapter) -> None:
        """users 스키마 확인"""
        columns = {c["name"]: c for c in await db.get_table_info("users")}

        assert set(columns) == {
            "user_id", "register_time", "total_deposit", "total_withdrawal", "note",
        }
        assert columns["user_id"]["pk"] is True

    @pytest.mark.asyncio
    async def test_type_check_constraint(self, db: SQLiteAdapter) -> None:
        """orders.type CHECK 제약조건"""
        with pytest.raises(aiosqlite.IntegrityError):
            await db.execute(
                """
                INSERT INTO orders (user_id, type, amount, order_date, submit_time)
                VALUES ('u1', 'refund', '1', '2024-01-01T00:00:00+00:00', '2024-01-01T00:00:00+00:00')
                """
            )
