"""
Config - параметры команд и загрузка YAML-конфига.

Пример .i18n-catalog.yaml:
    source_language: en
    recurse: true
    shard_marker: go
    languages: fr,de,es
    output_dir: build/i18n-diff
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .merger import DEFAULT_SHARD_MARKER, default_max_workers

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".i18n-catalog.yaml"

_LIST_FIELDS = ("languages", "language_files")


def parse_string_list(value, separator: str = ",") -> List[str]:
    """'fr, de,,es' -> ['fr', 'de', 'es']; список возвращается очищенным."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = str(value).split(separator)
    return [item.strip() for item in items if item and item.strip()]


def _parse_max_workers(value) -> int:
    """Число воркеров >= 1; строка "3" допускается."""
    if isinstance(value, bool):
        raise ConfigError(f"i18n: max_workers должен быть целым числом, получено {value!r}")
    try:
        workers = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"i18n: max_workers должен быть целым числом, получено {value!r}") from e
    if workers < 1:
        raise ConfigError(f"i18n: max_workers должен быть >= 1, получено {workers}")
    return workers


@dataclass
class CatalogOptions:
    """Параметры merge-strings / verify-strings."""
    verbose: bool = False
    dry_run: bool = False
    recurse: bool = False
    source_language: str = "en"
    directory: str = "."
    filename: str = ""
    output_dir: str = ""
    language_files: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    max_workers: int = field(default_factory=default_max_workers)
    shard_marker: str = DEFAULT_SHARD_MARKER

    def update(self, values: Dict[str, Any]) -> "CatalogOptions":
        """Переносит заданные (не None) значения в параметры."""
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key not in known:
                raise ConfigError(f"i18n: неизвестный параметр конфигурации: {key}")
            if value is None:
                continue
            if key in _LIST_FIELDS:
                value = parse_string_list(value)
            elif key == "max_workers":
                value = _parse_max_workers(value)
            setattr(self, key, value)
        return self


def load_config(path: Optional[str] = None) -> CatalogOptions:
    """
    Загружает параметры из YAML-файла.

    Если путь не задан и файла по умолчанию нет - значения по умолчанию.
    Явно заданный, но отсутствующий файл - ConfigError.
    """
    options = CatalogOptions()
    config_path = Path(path) if path else Path(DEFAULT_CONFIG_FILE)

    if not config_path.exists():
        if path:
            raise ConfigError(f"i18n: файл конфигурации не найден: {config_path}")
        logger.debug("Конфиг %s не найден, используются значения по умолчанию", config_path)
        return options

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"i18n: ошибка разбора конфига {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"i18n: конфиг {config_path} должен быть словарём")

    logger.info("Конфигурация загружена из %s", config_path)
    return options.update(data)


def setup_logging(verbose: bool = False) -> None:
    """Подробный вывод (INFO) только с verbose, иначе только ошибки."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.ERROR,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
