import logging

import pytest

from utils.logger import ColoredFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_accepts_level_name(restore_root_logger):
    root = setup_logging(level="debug")
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1


def test_setup_logging_writes_file(restore_root_logger, tmp_path):
    setup_logging(level=logging.INFO, log_to_file=True, log_dir=str(tmp_path / "logs"))
    logging.getLogger("scrubwave.test").info("peaks ready")
    for handler in logging.getLogger().handlers:
        handler.flush()

    files = list((tmp_path / "logs").glob("scrubwave_*.log"))
    assert len(files) == 1
    assert "peaks ready" in files[0].read_text(encoding="utf-8")


def test_env_level_used_when_not_given(restore_root_logger, monkeypatch):
    monkeypatch.setenv("SCRUBWAVE_LOG_LEVEL", "WARNING")
    root = setup_logging()
    assert root.level == logging.WARNING


def test_colored_formatter_does_not_mutate_record():
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "msg", None, None)
    text = ColoredFormatter(fmt="%(levelname)s %(message)s").format(record)
    assert "\033[31m" in text
    assert record.levelname == "ERROR"


def test_unknown_level_name_falls_back_to_info(restore_root_logger):
    root = setup_logging(level="loud")
    assert root.level == logging.INFO


def test_console_only_when_file_logging_off(restore_root_logger, tmp_path):
    root = setup_logging(level="info", log_to_file=False, log_dir=str(tmp_path / "logs"))
    assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)
    assert not (tmp_path / "logs").exists()
