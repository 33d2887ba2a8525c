# === FILE: vidscout/config.py ===
"""
Модуль для загрузки и валидации конфигурации VidScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import json
import os
import errno
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class DiscoveryOptions(BaseModel):
    """Параметры одного вызова поиска видео."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    use_dynamic: bool = Field(True, alias="useDynamic", description="Запускать ли headless-браузер.")
    dynamic_timeout_ms: int = Field(
        30000, gt=0, alias="dynamicTimeoutMs", description="Таймаут браузера (мс)."
    )
    fallback_to_direct_fetch: bool = Field(
        True, alias="fallbackToDirectFetch", description="Прямой запрос страницы вместе с браузером."
    )
    timeout: float = Field(60.0, gt=0, description="Общий бюджет на один вызов (секунд).")
    idle_connections: int = Field(
        2, ge=0, description="Сколько запросов в полёте считается «тишиной» сети."
    )
    idle_window_ms: int = Field(500, ge=0, description="Длительность окна тишины (мс).")


class ServerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(4000, ge=1, le=65535)
    cors_origin: str = "*"


class DownloaderConfig(BaseModel):
    """Настройки внешнего загрузчика (yt-dlp)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    command: List[str] = Field(default_factory=lambda: ["yt-dlp"], min_length=1)
    output_dir: Path = Path("downloads")
    info_timeout: float = Field(60.0, gt=0)
    download_timeout: float = Field(1800.0, gt=0)
    cleanup_after: float = Field(3600.0, ge=0, description="Через сколько секунд удалять файл.")

    @field_validator("command", mode="before")
    def _split_command(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.split()
        return v


class ScoutConfig(BaseModel):
    """Конфигурация сервиса и поиска видео."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    verify_ssl: bool = Field(False, description="Проверять TLS-сертификаты при прямом запросе.")
    fetch_timeout: float = Field(15.0, gt=0, description="Таймаут прямого запроса (секунд).")
    browser_args: List[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-blink-features=AutomationControlled",
            "--disable-dev-shm-usage",
        ]
    )
    discovery: DiscoveryOptions = Field(default_factory=DiscoveryOptions)
    server: ServerConfig = Field(default_factory=ServerConfig)
    downloader: DownloaderConfig = Field(default_factory=DownloaderConfig)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект ScoutConfig.
    Без пути берёт configs/default.yaml, а если его нет, значения по умолчанию.
    Явно указанный, но отсутствующий файл: FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScoutConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return ScoutConfig(**data)
    except ValidationError:
        raise


__all__ = [
    "DiscoveryOptions",
    "ServerConfig",
    "DownloaderConfig",
    "ScoutConfig",
    "load_config",
]
