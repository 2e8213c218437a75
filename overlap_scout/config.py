# === FILE: overlap_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации OverlapScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Type, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

from overlap_scout.extractor import DEFAULT_TARGET_KEYS
from overlap_scout.overlap import DEFAULT_TOP_N

TOKEN_ENV_VAR = "OVERLAP_SCOUT_TOKEN"

FetchErrorPolicy = Literal["record", "empty", "raise"]


class AnalyticsConfig(BaseModel):
    """Конфигурация одного запуска: доступ к API и параметры анализа."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_base_url: HttpUrl = Field(
        "https://spacecat.experiencecloud.live/api/v1/", description="Корневой URL REST API."
    )
    api_token: Optional[str] = Field(None, description="Bearer-токен для API.")
    headers: Dict[str, str] = Field(default_factory=dict, description="Дополнительные заголовки запросов.")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    concurrency: int = Field(10, ge=1, description="Максимум одновременных запросов в пакете.")
    top_n: int = Field(DEFAULT_TOP_N, ge=1, description="Знаменатель процентов пересечения (top N).")
    target_keys: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TARGET_KEYS),
        min_length=1,
        description="Имена полей, из которых извлекаются ссылки.",
    )
    output_dir: Path = Field(Path("output"), description="Каталог для артефактов по умолчанию.")
    on_fetch_error: FetchErrorPolicy = Field(
        "record", description="Что делать с неудачным запросом в пакете: record, empty или raise."
    )

    @field_validator("api_base_url", mode="before")
    def _ensure_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.endswith("/"):
            return v + "/"
        return v

    @model_validator(mode="after")
    def _token_from_env(self) -> AnalyticsConfig:
        if self.api_token is None and os.environ.get(TOKEN_ENV_VAR):
            # frozen model: обходим запрет присваивания
            object.__setattr__(self, "api_token", os.environ[TOKEN_ENV_VAR])
        return self

    def request_headers(self) -> Dict[str, str]:
        """Заголовки для каждого запроса к API."""
        headers = {"accept": "*/*", **self.headers}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers


_DEFAULT_CFG = Path("configs/default.yaml")

# суффикс файла -> (название формата, парсер, исключение парсера)
_PARSERS: Dict[str, Tuple[str, Callable[[str], Any], Type[Exception]]] = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def _read_mapping(path: Path) -> Dict[str, Any]:
    """Разбирает файл конфига по суффиксу; верхний уровень должен быть mapping."""
    suffix = path.suffix.lower()
    if suffix not in _PARSERS:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")
    fmt, parse, parse_error = _PARSERS[suffix]
    try:
        data = parse(path.read_text(encoding="utf-8")) or {}
    except parse_error as exc:
        raise ValueError(f"Неправильный {fmt} в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень {fmt} должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> AnalyticsConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AnalyticsConfig.
    Без пути берёт configs/default.yaml, а если его нет, то значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return AnalyticsConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    return AnalyticsConfig(**_read_mapping(path_obj))
