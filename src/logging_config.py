from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List


FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# httpx пишет каждый запрос на INFO, multipart каждую разобранную часть
QUIET_LOGGERS = ("httpx", "httpcore", "multipart", "python_multipart")


def _handlers(log_file: Path | str | None) -> List[logging.Handler]:
    console = logging.StreamHandler()
    if not log_file:
        return [console]
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return [console, logging.FileHandler(path, encoding="utf-8")]


def setup_logging(
    level: str,
    log_file: Path | str | None,
    quiet: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Настроить вывод логов в консоль и, если задан *log_file*, в файл.

    Parameters
    ----------
    level:
        Имя уровня из ``LOG_LEVEL`` (например, "INFO", "DEBUG").
    log_file:
        Необязательный путь из ``LOG_FILE``; каталоги создаются.
    quiet:
        Сторонние логгеры, для которых уровень не ниже WARNING.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=FORMAT,
        handlers=_handlers(log_file),
        force=True,
    )
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
