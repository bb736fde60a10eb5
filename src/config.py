from __future__ import annotations

from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

UPLOAD_PATH = "/api/upload"


class Settings(BaseSettings):
    """Настройки приложения из переменных окружения и ``.env``."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    # Порт, на котором ``main.py`` запускает сервер (``PORT``)
    port: int = 8000
    # По умолчанию форма отправляется на собственный прокси этого сервера
    upload_endpoint: Optional[str] = None
    upload_timeout: float = 120.0
    staging_dir: str = "staging"
    max_files: int = 50
    max_size_bytes: int = 100 * 1024 * 1024
    proxy_mode: Literal["forward", "stub"] = "forward"
    session_cookie: str = "docdrop_session"
    # Сессия без запросов дольше этого числа секунд закрывается
    session_ttl: float = 60 * 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _default_endpoint(self) -> "Settings":
        if not self.upload_endpoint:
            self.upload_endpoint = f"http://localhost:{self.port}{UPLOAD_PATH}"
        return self


class ProxySettings(BaseSettings):
    """Адрес внешнего API для прокси загрузки.

    Создаётся на каждый запрос, поэтому ``API_BASE`` и ``API_KEY``
    читаются из окружения в момент обращения.
    """

    api_base: Optional[str] = None
    api_key: Optional[str] = None
    proxy_timeout: float = 300.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


config = Settings()

__all__ = ["Settings", "ProxySettings", "config", "UPLOAD_PATH"]
