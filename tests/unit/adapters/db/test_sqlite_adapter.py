"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, create_connection


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성"""
        db_path = tmp_path / "test.db"

        conn = await create_connection(db_path)

        assert conn is not None

        # WAL 모드 확인
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()

        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        """어댑터 픽스처"""
        adapter = SQLiteAdapter(tmp_path / "test.db")
        await adapter.connect()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        """연결 및 종료"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_not_connected_raises(self, tmp_path: Path) -> None:
        """연결 전 사용 시 RuntimeError"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError, match="Not connected"):
            await adapter.execute("SELECT 1")

        with pytest.raises(RuntimeError, match="Not connected"):
            async with adapter.transaction():
                pass

    @pytest.mark.asyncio
    async def test_fetchall(self, adapter: SQLiteAdapter) -> None:
        """전체 조회"""
        await adapter.execute("CREATE TABLE items (value TEXT)")
        await adapter.executemany(
            "INSERT INTO items (value) VALUES (?)",
            [("A",), ("B",), ("C",)],
        )

        rows = await adapter.fetchall("SELECT value FROM items ORDER BY value")

        assert [r[0] for r in rows] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 커밋"""
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")

        async with adapter.transaction():
            assert adapter.in_transaction is True
            await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
            await adapter.execute("INSERT INTO tx_test (id) VALUES (2)")

        assert adapter.in_transaction is False
        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 롤백 (여러 테이블 모두 되돌림)"""
        await adapter.execute("CREATE TABLE tx_a (id INTEGER)")
        await adapter.execute("CREATE TABLE tx_b (id INTEGER)")

        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_a (id) VALUES (1)")
                await adapter.execute("INSERT INTO tx_b (id) VALUES (1)")
                raise ValueError("의도적 에러")

        assert await adapter.fetchall("SELECT id FROM tx_a") == []
        assert await adapter.fetchall("SELECT id FROM tx_b") == []

    @pytest.mark.asyncio
    async def test_nested_transaction_rejected(self, adapter: SQLiteAdapter) -> None:
        """같은 태스크 내 중첩 트랜잭션 거부"""
        with pytest.raises(RuntimeError, match="Nested"):
            async with adapter.transaction():
                async with adapter.transaction():
                    pass

        # 이후에도 정상 사용 가능
        async with adapter.transaction():
            await adapter.execute("CREATE TABLE after_nested (id INTEGER)")
        assert await adapter.table_exists("after_nested") is True

    @pytest.mark.asyncio
    async def test_concurrent_transactions_serialized(self, adapter: SQLiteAdapter) -> None:
        """동시 트랜잭션은 직렬화되어 갱신 손실 없음"""
        await adapter.execute("CREATE TABLE counter (n INTEGER)")
        await adapter.execute("INSERT INTO counter (n) VALUES (0)")

        async def increment() -> None:
            async with adapter.transaction():
                row = await adapter.fetchone("SELECT n FROM counter")
                await asyncio.sleep(0)
                await adapter.execute("UPDATE counter SET n = ?", (row[0] + 1,))

        await asyncio.gather(*(increment() for _ in range(20)))

        row = await adapter.fetchone("SELECT n FROM counter")
        assert row[0] == 20

    @pytest.mark.asyncio
    async def test_snapshot_sees_committed_only(self, adapter: SQLiteAdapter) -> None:
        """스냅샷은 진행 중인 쓰기를 보지 않음"""
        await adapter.execute("CREATE TABLE snap (id INTEGER)")

        writer_started = asyncio.Event()
        release_writer = asyncio.Event()

        async def writer() -> None:
            async with adapter.transaction():
                await adapter.execute("INSERT INTO snap (id) VALUES (1)")
                writer_started.set()
                await release_writer.wait()

        async def reader() -> int:
            await writer_started.wait()
            release_writer.set()
            async with adapter.snapshot():
                rows = await adapter.fetchall("SELECT id FROM snap")
            return len(rows)

        _, count = await asyncio.gather(writer(), reader())

        # reader는 writer 커밋 이후에 실행됨
        assert count == 1

    @pytest.mark.asyncio
    async def test_table_and_index_exists(self, adapter: SQLiteAdapter) -> None:
        """테이블/인덱스 존재 확인"""
        assert await adapter.table_exists("nonexistent") is False

        await adapter.execute("CREATE TABLE existing (id INTEGER)")
        await adapter.execute("CREATE INDEX ix_existing_id ON existing(id)")

        assert await adapter.table_exists("existing") is True
        assert await adapter.index_exists("ix_existing_id") is True
        assert await adapter.index_exists("ix_missing") is False

    @pytest.mark.asyncio
    async def test_get_table_info(self, adapter: SQLiteAdapter) -> None:
        """테이블 정보 조회"""
        await adapter.execute("CREATE TABLE info (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")

        columns = await adapter.get_table_info("info")

        assert [c["name"] for c in columns] == ["id", "name"]
        assert columns[0]["pk"] is True
        assert columns[1]["notnull"] is True

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        """컨텍스트 매니저"""
        async with SQLiteAdapter(tmp_path / "ctx_test.db") as adapter:
            assert adapter.is_connected is True
            await adapter.execute("CREATE TABLE ctx (id INTEGER)")

        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_memory_database(self) -> None:
        """인메모리 DB"""
        async with SQLiteAdapter(":memory:") as adapter:
            await adapter.execute("CREATE TABLE mem (id INTEGER)")
            assert await adapter.table_exists("mem") is True
