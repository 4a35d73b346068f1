"""
Ledger 로깅 설정

스크립트나 Ledger를 사용하는 앱에서 한 번 호출하여 루트 로거 구성.
콘솔(stdout)과 일별 로그 파일에 같은 포맷으로 기록하며,
모듈별 로거는 logging.getLogger(__name__) 으로 얻어 extra 에 주문/사용자 ID 를 싣는다.

    from core.logging import setup_logging
    setup_logging("check_db", console_level=settings.log_level)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_RETENTION_DAYS = 7

# 쿼리 단위 로그를 쏟아내는 라이브러리 로거
NOISY_LOGGERS = ["aiosqlite", "asyncio"]


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """로그 파일 경로 반환"""
    return (log_dir or Paths.LOGS_DIR) / f"{process_name}.log"


def _file_handler(log_file: Path, level: int) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_RETENTION_DAYS,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"  # check_db.log.2024-03-15
    handler.setLevel(level)
    return handler


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 구성

    다시 호출하면 이전 핸들러를 닫고 교체하므로 핸들러가 누적되지 않는다.

    Args:
        process_name: 로그 파일 이름 ({process_name}.log)
        console_level: stdout 핸들러 레벨
        file_level: 파일 핸들러 레벨
        log_dir: 로그 디렉토리 (기본 Paths.LOGS_DIR)

    Returns:
        루트 Logger
    """
    log_file = get_log_file_path(process_name, log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in (console, _file_handler(log_file, file_level)):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        f"Logging ready: {process_name} "
        f"(console={logging.getLevelName(console_level)}, "
        f"file={log_file} {logging.getLevelName(file_level)})"
    )
    return root
