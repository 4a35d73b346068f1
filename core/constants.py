"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → orderledger/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    # 업무 기준 시간대 (미국 동부)
    TIMEZONE: str = "America/New_York"

    LOG_LEVEL: str = "INFO"

    # 스키마 버전 (PRAGMA user_version)
    SCHEMA_VERSION: int = 1


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    CONFIG_FILE: Path = CONFIG_DIR / "ledger.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "ledger.db"

