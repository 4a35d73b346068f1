"""
pytest 공통 fixture 정의

임시 디렉토리, 설정 파일, 스키마가 초기화된 임시 DB
"""

import tempfile
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.ledger.schema import init_ledger_schema


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """테스트용 ledger.yaml 파일 생성"""
    db_path = (temp_dir / "ledger_test.db").as_posix()
    config_content = f"""# 테스트용 ledger.yaml
database:
  path: "{db_path}"

timezone: Asia/Seoul

logging:
  level: debug
"""
    config_path = temp_dir / "ledger.yaml"
    config_path.write_text(config_content, encoding="utf-8")
    return config_path


@pytest.fixture
def temp_config_file_invalid_timezone(temp_dir: Path) -> Path:
    """잘못된 timezone의 ledger.yaml 파일 생성"""
    config_path = temp_dir / "ledger_invalid_tz.yaml"
    config_path.write_text("timezone: Mars/Olympus_Mons\n", encoding="utf-8")
    return config_path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Settings 싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "ledger_test.db")
    await adapter.connect()
    await init_ledger_schema(adapter)
    yield adapter
    await adapter.close()
