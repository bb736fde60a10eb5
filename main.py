"""Запуск веб-сервиса DocDrop.

Страница загрузки, маршруты виджета и прокси ``/api/upload`` живут в
``web_app.server``. Адрес и режим перезагрузки берутся из ``HOST``,
``PORT`` и ``RELOAD``; остальные настройки читает :mod:`config`.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict

# Исходники лежат в ``src``: запуск возможен без установки пакета
sys.path.append(str(Path(__file__).resolve().parent / "src"))

import uvicorn
from config import config  # type: ignore
from logging_config import setup_logging  # type: ignore

logger = logging.getLogger(__name__)

APP = "web_app.server:app"
TRUTHY = {"1", "true", "yes"}


def server_options() -> Dict[str, Any]:
    return {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", str(config.port))),
        "reload": os.getenv("RELOAD", "false").lower() in TRUTHY,
    }


def main() -> None:
    options = server_options()
    setup_logging(config.log_level, config.log_file)
    logger.info(
        "Serving upload page on %s:%s, submissions go to %s",
        options["host"],
        options["port"],
        config.upload_endpoint,
    )
    if config.proxy_mode == "stub":
        logger.warning("Upload proxy runs in stub mode: uploads are not forwarded")

    try:
        uvicorn.run(APP, **options)
    except Exception:
        logger.exception("Не удалось запустить сервер")
        sys.exit(1)


if __name__ == "__main__":
    main()
