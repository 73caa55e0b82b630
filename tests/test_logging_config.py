"""
Brief: Tests for rdapfetch.config.logging_config.init_logging and formatters.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import logging.handlers

import pytest

from rdapfetch.config.logging_config import (
    BracketLevelFormatter,
    SyslogFormatter,
    init_logging,
    parse_level,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """
    Brief: Restore root logger handlers and level after each test.

    Inputs:
      - None

    Outputs:
      - None
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_init_logging_defaults_to_warn_on_stderr():
    """
    Brief: Without config the client logs warnings and above to stderr.

    Inputs:
      - cfg: None

    Outputs:
      - None: Asserts StreamHandler present and WARNING level
    """
    init_logging(None)
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_init_logging_level_override_and_noisy_loggers():
    """
    Brief: The explicit level wins over cfg and urllib3 never drops below info.

    Inputs:
      - cfg level info, override debug

    Outputs:
      - None
    """
    init_logging({"level": "info"}, level="debug")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.INFO


def test_init_logging_stderr_disabled():
    """
    Brief: stderr: false leaves no stream handler on the root logger.

    Inputs:
      - cfg with stderr disabled

    Outputs:
      - None
    """
    init_logging({"stderr": False})
    assert logging.getLogger().handlers == []


def test_log_file_receives_tagged_records(tmp_path):
    """
    Brief: A configured log file gets bracket-tagged lines; parents are created.

    Inputs:
      - tmp_path: pytest temporary directory

    Outputs:
      - None
    """
    target = tmp_path / "nested" / "dir" / "client.log"
    init_logging({"level": "info", "file": str(target), "stderr": False})
    logging.getLogger("rdapfetch.transport").info("trying %s", "https://rdap.example")
    for handler in logging.getLogger().handlers:
        handler.flush()

    line = target.read_text(encoding="utf-8").strip()
    assert line.endswith("[info] rdapfetch.transport: trying https://rdap.example")


class RecordingSyslog(logging.Handler):
    """Stand-in for SysLogHandler that remembers its constructor arguments."""

    LOG_USER = 1
    LOG_DAEMON = 3
    instances = []

    def __init__(self, address=None, facility=None):
        super().__init__()
        self.address = address
        self.facility = facility
        RecordingSyslog.instances.append(self)

    def emit(self, record):
        pass


@pytest.mark.parametrize(
    "syslog_cfg,address,facility,tag",
    [
        (True, "/dev/log", 1, "rdapfetch"),
        (
            {"address": ["logs.example", "5514"], "facility": "daemon", "tag": "rdap"},
            ("logs.example", 5514),
            3,
            "rdap",
        ),
        ({"facility": "no-such-facility"}, "/dev/log", 1, "rdapfetch"),
    ],
)
def test_syslog_handler_options(monkeypatch, syslog_cfg, address, facility, tag):
    """
    Brief: syslog: true uses defaults; a mapping sets address, facility and tag.

    Inputs:
      - syslog_cfg: value of logging.syslog
      - address, facility, tag: expected handler settings

    Outputs:
      - None
    """
    RecordingSyslog.instances = []
    monkeypatch.setattr(logging.handlers, "SysLogHandler", RecordingSyslog)

    init_logging({"stderr": False, "syslog": syslog_cfg})

    (handler,) = RecordingSyslog.instances
    assert handler in logging.getLogger().handlers
    assert handler.address == address
    assert handler.facility == facility
    assert isinstance(handler.formatter, SyslogFormatter)
    assert handler.formatter.tag == tag


def test_unavailable_syslog_is_reported_not_raised(monkeypatch, capsys):
    """
    Brief: An OSError while opening syslog becomes a warning on stderr.

    Inputs:
      - monkeypatch: SysLogHandler replaced by a callable that raises
      - capsys: pytest stderr capture

    Outputs:
      - None
    """

    def broken(*_args, **_kwargs):
        raise OSError("connection refused")

    broken.LOG_USER = 1
    monkeypatch.setattr(logging.handlers, "SysLogHandler", broken)

    init_logging({"syslog": True})

    err = capsys.readouterr().err
    assert "[warn] root: Failed to configure syslog: connection refused" in err


def test_formatters_produce_expected_tags():
    """
    Brief: Both formatters render lowercase bracketed level tags.

    Inputs:
      - None

    Outputs:
      - None
    """
    bracket = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")
    record = logging.LogRecord("rdapfetch.client", logging.ERROR, __file__, 1, "boom", (), None)
    record.created = 86400.0
    assert bracket.format(record) == "1970-01-02T00:00:00Z [error] rdapfetch.client: boom"

    custom = logging.LogRecord("x", 25, __file__, 2, "odd", (), None)
    assert SyslogFormatter("rdap").format(custom) == "rdap: [lvl25] x: odd"
    warn = logging.LogRecord("y", logging.WARNING, __file__, 3, "w", (), None)
    assert SyslogFormatter().format(warn) == "rdapfetch: [warn] y: w"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("DEBUG", logging.DEBUG),
        ("warn", logging.WARNING),
        ("crit", logging.CRITICAL),
        ("bogus", logging.WARNING),
        (None, logging.WARNING),
    ],
)
def test_parse_level(value, expected):
    """
    Brief: parse_level maps names case-insensitively with a warn fallback.

    Inputs:
      - value: level name

    Outputs:
      - None
    """
    assert parse_level(value) == expected
