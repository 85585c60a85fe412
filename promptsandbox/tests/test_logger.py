import logging
from logging.handlers import RotatingFileHandler

from promptsandbox.util.logger import GatewayKeyMaskingFilter, _file_handler, _normalize_level, logger


KEY = "sk-or-v1-" + "9f8e7d6c5b4a" * 3


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("promptsandbox", logging.INFO, __file__, 1, msg, args, None)


def test_masking_filter_hides_gateway_keys_in_formatted_message():
    record = _record("dispatch key=%s model=%s", KEY, "grok-4")
    assert GatewayKeyMaskingFilter().filter(record) is True
    message = record.getMessage()
    assert KEY not in message
    assert message.startswith("dispatch key=sk-or-v1-")
    assert message.endswith(f"{KEY[-4:]} model=grok-4")


def test_masking_filter_leaves_other_records_alone():
    record = _record("health check %s", "ok")
    GatewayKeyMaskingFilter().filter(record)
    assert record.getMessage() == "health check ok"
    assert record.args == ("ok",)


def test_normalize_level():
    assert _normalize_level("debug") == logging.DEBUG
    assert _normalize_level("nonsense") == logging.INFO


def test_file_handler_disabled_by_empty_dir(tmp_path):
    assert _file_handler("", logging.Formatter()) is None
    handler = _file_handler(str(tmp_path / "logs"), logging.Formatter())
    try:
        assert handler is not None
        assert (tmp_path / "logs" / "promptsandbox.log").exists()
    finally:
        handler.close()


def test_project_logger_does_not_propagate():
    assert logger.name == "promptsandbox"
    assert logger.propagate is False
    # pytest attaches its own capture handlers after ours
    installed = [h for h in logger.handlers if type(h) in (logging.StreamHandler, RotatingFileHandler)]
    assert installed
    assert all(any(isinstance(f, GatewayKeyMaskingFilter) for f in h.filters) for h in installed)
