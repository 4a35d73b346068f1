"""
설정 로더

ledger.yaml 로드 및 Ledger 설정 생성
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger 설정 (ledger.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    timezone: str
    log_level: str

    @property
    def tzinfo(self) -> ZoneInfo:
        """업무 기준 시간대"""
        return ZoneInfo(self.timezone)


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def default_config() -> LedgerConfig:
    """기본 설정 (ledger.yaml이 없을 때 사용)"""
    return LedgerConfig(
        db_path=Paths.DEFAULT_DB,
        timezone=Defaults.TIMEZONE,
        log_level=Defaults.LOG_LEVEL,
    )


def load_config(path: Path | None = None) -> LedgerConfig:
    """ledger.yaml 파일 로드

    파일이 없으면 기본 설정 반환. 빠진 항목도 기본값으로 채움.
    상대 경로의 DB 경로는 프로젝트 루트 기준으로 해석.

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerConfig 인스턴스

    Raises:
        ConfigLoadError: 형식이 잘못되었거나 값이 유효하지 않은 경우
    """
    if path is None:
        path = Paths.CONFIG_FILE

    if not path.exists():
        return default_config()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"ledger.yaml 파싱 실패: {e}") from e

    if data is None:
        return default_config()

    if not isinstance(data, dict):
        raise ConfigLoadError("ledger.yaml 최상위는 매핑이어야 합니다")

    # database.path
    database = data.get("database") or {}
    db_path_str = database.get("path")
    if db_path_str:
        db_path = Path(db_path_str)
        if not db_path.is_absolute():
            db_path = PROJECT_ROOT / db_path
    else:
        db_path = Paths.DEFAULT_DB

    # timezone 검증
    tz_name = data.get("timezone") or Defaults.TIMEZONE
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigLoadError(f"유효하지 않은 timezone입니다: '{tz_name}'") from e

    # logging.level 검증
    logging_config = data.get("logging") or {}
    log_level = str(logging_config.get("level") or Defaults.LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigLoadError(f"유효하지 않은 로그 레벨입니다: '{log_level}'")

    return LedgerConfig(
        db_path=db_path,
        timezone=tz_name,
        log_level=log_level,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    ledger.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: LedgerConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(config_path)

    @property
    def config(self) -> LedgerConfig:
        """로드된 설정"""
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        return self.config.db_path

    @property
    def timezone(self) -> str:
        """업무 기준 시간대 이름"""
        return self.config.timezone

    @property
    def tzinfo(self) -> ZoneInfo:
        """업무 기준 시간대 (주문일 해석)"""
        return self.config.tzinfo

    @property
    def log_level(self) -> int:
        """로그 레벨 (logging 상수)"""
        return logging.getLevelName(self.config.log_level)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        config_path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(config_path)
