"""Логгеры, настроенные по секции ``logging`` файла ``config.yml``.

Пример::

    logging:
      level: INFO
      file: logs/docdrop.log
      max_bytes: 1048576
      backup_count: 3
      loggers:
        staging: DEBUG

Путь к YAML задаёт ``DOCDROP_CONFIG``. Если файла нет или в нём не указан
``file``, записи получают только обработчики из
:func:`logging_config.setup_logging`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

import yaml

CONFIG_ENV = "DOCDROP_CONFIG"
DEFAULT_CONFIG = "config.yml"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level(name: object, default: int = logging.INFO) -> int:
    return getattr(logging, str(name).upper(), default)


@dataclass(frozen=True)
class LogFileConfig:
    level: int = logging.INFO
    file: Optional[Path] = None
    max_bytes: int = 1024 * 1024
    backup_count: int = 3
    format: str = DEFAULT_FORMAT
    loggers: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: dict) -> "LogFileConfig":
        file_name = raw.get("file")
        return cls(
            level=_level(raw.get("level", "INFO")),
            file=Path(file_name) if file_name else None,
            max_bytes=int(raw.get("max_bytes", cls.max_bytes)),
            backup_count=int(raw.get("backup_count", cls.backup_count)),
            format=raw.get("format", DEFAULT_FORMAT),
            loggers={name: _level(lvl) for name, lvl in (raw.get("loggers") or {}).items()},
        )


@lru_cache()
def load_log_config() -> LogFileConfig:
    path = Path(os.environ.get(CONFIG_ENV, DEFAULT_CONFIG))
    try:
        with path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except FileNotFoundError:
        return LogFileConfig()
    return LogFileConfig.from_mapping(data.get("logging") or {})


@lru_cache()
def _install_file_handler() -> None:
    cfg = load_log_config()
    if cfg.file is None:
        return
    root = logging.getLogger()
    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return
    cfg.file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        cfg.file, maxBytes=cfg.max_bytes, backupCount=cfg.backup_count, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(cfg.format))
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > cfg.level:
        root.setLevel(cfg.level)


def get_logger(name: str) -> logging.Logger:
    """Логгер *name*; записи ``loggers`` переопределяют общий уровень."""
    _install_file_handler()
    cfg = load_log_config()
    log = logging.getLogger(name)
    log.setLevel(cfg.loggers.get(name, cfg.level))
    return log


class SessionLogger(logging.LoggerAdapter):
    """Добавляет к каждой записи короткий id сессии загрузки."""

    def process(self, msg, kwargs):
        return f"[{self.extra['session']}] {msg}", kwargs


def session_logger(log: logging.Logger, session_id: str) -> SessionLogger:
    return SessionLogger(log, {"session": session_id[:8]})


__all__ = ["LogFileConfig", "load_log_config", "get_logger", "SessionLogger", "session_logger"]
