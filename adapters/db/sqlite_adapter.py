"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
여러 컬렉션(테이블)에 걸친 원자적 트랜잭션 제공.

연결은 isolation_level=None (autocommit)으로 열고 트랜잭션은 명시적으로 시작.
하나의 연결을 공유하므로 모든 트랜잭션은 asyncio.Lock으로 직렬화됨.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로 (":memory:" 허용)

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    if db_path_str != ":memory:":
        # 디렉토리가 없으면 생성
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # 트랜잭션은 SQLiteAdapter가 직접 BEGIN/COMMIT
    conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    쓰기 트랜잭션(transaction)과 읽기 스냅샷(snapshot) 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")
        await adapter.execute("UPDATE ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()
        self._tx_owner: asyncio.Task[Any] | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """트랜잭션 진행 여부"""
        return self._tx_owner is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        conn = self._require_conn()

        if parameters:
            return await conn.execute(sql, parameters)
        return await conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        conn = self._require_conn()
        return await conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    @asynccontextmanager
    async def _locked(self, begin_sql: str) -> AsyncIterator[aiosqlite.Connection]:
        """잠금 획득 후 트랜잭션 실행

        성공 시 커밋, 예외 시 롤백 후 재발생.
        """
        conn = self._require_conn()

        current = asyncio.current_task()
        if current is not None and self._tx_owner is current:
            raise RuntimeError("Nested transaction is not supported")

        async with self._tx_lock:
            self._tx_owner = current
            try:
                await conn.execute(begin_sql)
                try:
                    yield conn
                    await conn.commit()
                except BaseException:
                    await conn.rollback()
                    raise
            finally:
                self._tx_owner = None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """쓰기 트랜잭션 컨텍스트 매니저

        블록 안의 모든 읽기/쓰기가 하나의 원자적 단위로 적용됨.
        성공 시 자동 커밋, 예외 시 자동 롤백.

        사용 예시:
        ```python
        async with adapter.transaction():
            await adapter.execute("INSERT INTO orders ...")
            await adapter.execute("UPDATE users ...")
            # 성공 시 자동 커밋
        ```
        """
        async with self._locked("BEGIN IMMEDIATE") as conn:
            yield conn

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[aiosqlite.Connection]:
        """읽기 스냅샷 컨텍스트 매니저

        커밋된 데이터만 일관되게 조회. 진행 중인 쓰기 트랜잭션과 섞이지 않음.
        """
        async with self._locked("BEGIN") as conn:
            yield conn

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    async def index_exists(self, index_name: str) -> bool:
        """인덱스 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='index' AND name=?",
            (index_name,),
        )
        return result is not None

    async def get_table_info(self, table_name: str) -> list[dict[str, Any]]:
        """테이블 정보 조회"""
        rows = await self.fetchall(f"PRAGMA table_info({table_name})")

        columns = []
        for row in rows:
            columns.append({
                "cid": row[0],
                "name": row[1],
                "type": row[2],
                "notnull": bool(row[3]),
                "default_value": row[4],
                "pk": bool(row[5]),
            })

        return columns

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
