import io
import logging
import sys

from image_processor import logger as ip_logger


def test_setup_logger_idempotent_handlers():
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    base = ip_logger.setup_logger(level=logging.DEBUG)
    _ = ip_logger.setup_logger(level=logging.DEBUG)

    handlers = [h for h in base.handlers if isinstance(getattr(h, "stream", None), ip_logger._StderrProxy)]
    assert len(handlers) == 1
    assert base.propagate is False


def test_env_level_override(monkeypatch):
    monkeypatch.setenv("IMAGE_PROCESSOR_LOG_LEVEL", "warning")
    base = ip_logger.setup_logger(level=logging.DEBUG)
    assert base.level == logging.WARNING
    monkeypatch.delenv("IMAGE_PROCESSOR_LOG_LEVEL")
    assert ip_logger.setup_logger().level == logging.INFO


def test_category_filter(monkeypatch):
    monkeypatch.setenv("IMAGE_PROCESSOR_LOG_CATS", "codec, api")
    base = ip_logger.setup_logger()
    handler = next(h for h in base.handlers if isinstance(getattr(h, "stream", None), ip_logger._StderrProxy))

    def record(name: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)

    assert handler.filter(record("image_processor.codec"))
    assert not handler.filter(record("image_processor.filters"))

    monkeypatch.delenv("IMAGE_PROCESSOR_LOG_CATS")
    ip_logger.setup_logger()
    assert handler.filter(record("image_processor.filters"))


def test_get_logger_children():
    child = ip_logger.get_logger("codec")
    assert child.name == "image_processor.codec"
    assert ip_logger.get_logger().name == "image_processor"


def test_handler_follows_swapped_stderr(monkeypatch):
    base = ip_logger.setup_logger()
    stale = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stale)
    base.warning("before swap")
    assert "WARNING: before swap" in stale.getvalue()
    stale.close()

    live = io.StringIO()
    monkeypatch.setattr(sys, "stderr", live)
    child = ip_logger.get_logger("codec")
    child.warning("after swap")
    assert "WARNING: after swap" in live.getvalue()
    assert len(base.handlers) == 1
