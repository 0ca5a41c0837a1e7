import json
import logging
import sys

import pytest

from unity_project_setup.logging_system import JsonFormatter, LogManager


@pytest.fixture
def manager(tmp_path):
    mgr = LogManager("unity_project_setup.test_component", level="DEBUG", log_file=tmp_path / "logs" / "app.log")
    yield mgr
    mgr.shutdown()


def test_file_handler_writes_json(manager, tmp_path):
    manager.get_logger().info("hello %s", "world")
    for handler in manager.get_logger().handlers:
        handler.flush()
    line = (tmp_path / "logs" / "app.log").read_text(encoding="utf-8").strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["module"] == "unity_project_setup.test_component"


def test_handlers_attached_once(manager, tmp_path):
    count = len(manager.get_logger().handlers)
    LogManager("unity_project_setup.test_component", log_file=tmp_path / "other.log")
    assert len(manager.get_logger().handlers) == count


def test_operation_logs_timing(manager, caplog):
    with caplog.at_level(logging.DEBUG):
        with manager.operation("scaffold", extra={"project": "Game"}):
            pass
    done = [r for r in caplog.records if r.getMessage() == "scaffold: done"]
    assert done and done[0].performance_ms >= 0


def test_operation_logs_and_reraises(manager, caplog):
    with caplog.at_level(logging.ERROR):
        with pytest.raises(OSError):
            with manager.operation("scaffold"):
                raise OSError("disk full")
    assert "scaffold: error disk full" in caplog.text


def test_json_formatter_includes_exception():
    try:
        raise ValueError("bad")
    except ValueError:
        record = logging.getLogger("x").makeRecord("x", logging.ERROR, "f", 1, "failed", (), exc_info=sys.exc_info())

    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "failed"
    assert "ValueError: bad" in payload["stack"]


def test_defaults_come_from_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    mgr = LogManager("unity_project_setup.test_defaults")
    try:
        assert mgr.get_logger().level == logging.WARNING
        assert any(
            isinstance(h, logging.FileHandler) and h.baseFilename == str(tmp_path / "logs" / "test.log")
            for h in mgr.get_logger().handlers
        )
    finally:
        mgr.shutdown()


def test_unwritable_log_file_keeps_console_only(tmp_path):
    (tmp_path / "blocked").write_text("not a folder", encoding="utf-8")
    mgr = LogManager("unity_project_setup.test_blocked", log_file=tmp_path / "blocked" / "app.log")
    try:
        handlers = mgr.get_logger().handlers
        assert len(handlers) == 1
        assert not isinstance(handlers[0], logging.FileHandler)
    finally:
        mgr.shutdown()
