# tests/stowage/core/test_logging.py
import json
import logging
import logging.handlers
import sys

import pytest

from stowage.config.settings import LoggingSettings, loadSettings
from stowage.core.logging import (
    DevFormatter,
    JsonFormatter,
    boundLogContext,
    clearLogContext,
    configureLogging,
    getLogContext,
    setLogContext,
)


@pytest.fixture(autouse=True)
def restoreStowageLogger():
    root = logging.getLogger("stowage")
    saved = (list(root.handlers), root.level, root.propagate)
    yield
    for handler in root.handlers:
        if handler not in saved[0]:
            handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    root.propagate = saved[2]


def _record(msg="hello", name="stowage.install.installer", level=logging.INFO):
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_configureLogging_console_only():
    root = configureLogging(LoggingSettings())

    assert root.name == "stowage"
    assert root.level == logging.INFO
    assert root.propagate is False
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, DevFormatter)


def test_configureLogging_dev_mode_is_debug():
    assert configureLogging(LoggingSettings(devMode=True, level="ERROR")).level == logging.DEBUG


def test_configureLogging_with_file(tmp_path):
    logFile = tmp_path / "logs" / "stowage.log"
    root = configureLogging(LoggingSettings(level="WARNING", logFile=logFile))

    fileHandlers = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(fileHandlers) == 1
    assert isinstance(fileHandlers[0].formatter, JsonFormatter)
    assert logFile.parent.is_dir()

    logging.getLogger("stowage.install").warning("disk is %s", "full")
    fileHandlers[0].flush()
    line = json.loads(logFile.read_text(encoding="utf-8").splitlines()[-1])
    assert line["msg"] == "disk is full"
    assert line["logger"] == "stowage.install"
    assert line["level"] == "warning"


def test_configureLogging_is_repeatable():
    configureLogging()
    root = configureLogging()
    assert len(root.handlers) == 1


def test_log_context_set_and_clear():
    setLogContext(package="a-2", phase="extracting")
    setLogContext(phase="building", ignored=None)
    assert getLogContext() == {"package": "a-2", "phase": "building"}

    clearLogContext()
    assert getLogContext() is None


def test_dev_formatter_includes_context():
    setLogContext(package="a-2", phase="building")
    text = DevFormatter().format(_record())
    assert text == "INFO: [stowage.install.installer] hello [a-2/building]"


def test_dev_formatter_without_context():
    assert DevFormatter().format(_record("plain")) == "INFO: [stowage.install.installer] plain"


def test_json_formatter_includes_context_and_exception():
    setLogContext(package="a-2")
    try:
        raise RuntimeError("bad build")
    except RuntimeError:
        record = logging.LogRecord("stowage.x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

    data = json.loads(JsonFormatter().format(record))

    assert data["ctx"] == {"package": "a-2"}
    assert data["level"] == "error"
    assert data["exc"]["type"] == "RuntimeError"
    assert data["exc"]["message"] == "bad build"
    assert "Traceback" in data["exc"]["stack"]


def test_boundLogContext_restores_previous_values():
    setLogContext(package="a-2", phase="building")

    with boundLogContext(extension="ext/setup.py") as ctx:
        assert ctx == {"package": "a-2", "phase": "building", "extension": "ext/setup.py"}
        assert DevFormatter().format(_record()).endswith("[a-2/building/ext/setup.py]")

    assert getLogContext() == {"package": "a-2", "phase": "building"}


def test_configureLogging_from_installer_settings(tmp_path):
    userFile = tmp_path / "stowage.json5"
    userFile.write_text('{logging: {level: "ERROR", logFile: "%s"}}' % (tmp_path / "install.log").as_posix(), encoding="utf-8")

    root = configureLogging(loadSettings(userFile).logging)

    assert root.level == logging.ERROR
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
