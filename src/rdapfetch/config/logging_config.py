from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}

# Third-party loggers that are chatty at debug level (connection pool
# bookkeeping); they follow the configured level but never go below info.
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


class SyslogFormatter(logging.Formatter):
    """Formatter for syslog output without timestamps (syslog adds its own)."""

    def __init__(self, tag: str = "rdapfetch") -> None:
        super().__init__()
        self.tag = tag

    def format(self, record):
        """Prefix the program tag and bracketed level, no timestamp."""
        record.level_tag = _level_tag(record.levelno)
        return f"{self.tag}: {record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Formatter that adds bracketed lowercase level tags and UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        """Format the record time as UTC ISO-8601 with Z suffix."""
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        """Add level_tag attribute and format the record."""
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def parse_level(value: object, default: int = logging.WARNING) -> int:
    """Brief: Map a level name (debug, info, warn, error, crit) to a constant.

    Inputs:
      - value: Level name, case-insensitive; None yields default.
      - default: Level used for unknown or missing names.

    Outputs:
      - int: logging level constant.

    Example:
      >>> parse_level("WARN")
      30
    """

    if value is None:
        return default
    return _LEVELS.get(str(value).strip().lower(), default)


def _syslog_handler(syslog_cfg: Any) -> logging.Handler:
    if isinstance(syslog_cfg, dict):
        address = syslog_cfg.get("address", "/dev/log")
        if isinstance(address, (list, tuple)) and len(address) == 2:
            address = (str(address[0]), int(address[1]))
        facility = getattr(
            logging.handlers.SysLogHandler,
            f"LOG_{str(syslog_cfg.get('facility', 'USER')).upper()}",
            logging.handlers.SysLogHandler.LOG_USER,
        )
        tag = str(syslog_cfg.get("tag", "rdapfetch"))
    else:
        address = "/dev/log"
        facility = logging.handlers.SysLogHandler.LOG_USER
        tag = "rdapfetch"

    handler = logging.handlers.SysLogHandler(address=address, facility=facility)
    handler.setFormatter(SyslogFormatter(tag))
    return handler


def _file_handler(file_path: str, formatter: logging.Formatter) -> logging.Handler:
    path = os.path.abspath(os.path.expanduser(file_path))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(formatter)
    return handler


def init_logging(cfg: Optional[Dict[str, Any]], level: Optional[str] = None) -> None:
    """Brief: Replace the root logger's handlers according to cfg.

    Inputs:
      - cfg: The `logging` section of the config (None means defaults):
          - level: debug | info | warn | error | crit (default warn).
          - stderr: Log to stderr (default true).
          - file: Optional log file path; parent directories are created.
          - syslog: true, or {address: /dev/log | [host, port],
            facility: USER, tag: rdapfetch}.
      - level: --log-level value; wins over cfg['level'].

    Outputs:
      - None.

    Notes:
      - Documents go to stdout, so only warnings and errors reach stderr
        unless a lower level is asked for.
    """

    cfg = cfg or {}
    root_level = parse_level(level if level is not None else cfg.get("level"))
    formatter = BracketLevelFormatter(
        fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s"
    )

    root = logging.getLogger()
    root.setLevel(root_level)
    root.handlers[:] = []

    if cfg.get("stderr", True):
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        root.addHandler(console)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        root.addHandler(_file_handler(file_path.strip(), formatter))

    if cfg.get("syslog"):
        try:
            root.addHandler(_syslog_handler(cfg["syslog"]))
        except (OSError, ValueError) as exc:  # pragma: no cover - host dependent
            root.warning("Failed to configure syslog: %s", exc)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.INFO))

    logging.captureWarnings(True)
