"""
어댑터 레이어

외부 저장소(SQLite)와의 연동을 담당.
"""

from adapters.db import SQLiteAdapter, create_connection

__all__ = [
    "SQLiteAdapter",
    "create_connection",
]
