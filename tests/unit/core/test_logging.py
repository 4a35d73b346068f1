"""
core/logging.py 테스트
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.logging import NOISY_LOGGERS, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_logger():
    """루트 로거 상태 복원"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestSetupLogging:
    """setup_logging 테스트"""

    def test_handlers(self, tmp_path: Path, restore_root_logger) -> None:
        """콘솔 + 일별 파일 핸들러"""
        root = setup_logging("ledger", log_dir=tmp_path)

        kinds = {type(h) for h in root.handlers}
        assert TimedRotatingFileHandler in kinds
        assert logging.StreamHandler in kinds
        assert (tmp_path / "ledger.log").exists()

    def test_no_duplicate_handlers(self, tmp_path: Path, restore_root_logger) -> None:
        """여러 번 호출해도 핸들러 중복 없음"""
        setup_logging("ledger", log_dir=tmp_path)
        root = setup_logging("ledger", log_dir=tmp_path)

        assert len(root.handlers) == 2

    def test_noisy_loggers_quieted(self, tmp_path: Path, restore_root_logger) -> None:
        setup_logging("ledger", log_dir=tmp_path)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_writes_to_file(self, tmp_path: Path, restore_root_logger) -> None:
        setup_logging("ledger", log_dir=tmp_path)

        logging.getLogger("core.ledger.store").info("Order added: 1")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (tmp_path / "ledger.log").read_text(encoding="utf-8")
        assert "core.ledger.store | Order added: 1" in content


def test_get_log_file_path(tmp_path: Path) -> None:
    assert get_log_file_path("ledger", tmp_path) == tmp_path / "ledger.log"
