#!/usr/bin/env python3
"""
Catalog - хранилище каталогов строк.

Каталог - JSON-массив записей в файле:
    [
      {
        "id": "Welcome {{.Name}}",
        "translation": "Bienvenido {{.Name}}",
        "modified": false
      }
    ]

Поле translation - либо строка, либо словарь форм множественного числа
{"one": "...", "other": "..."}. Форма определяется при загрузке
(SingleTranslation / PluralTranslation), дальше код работает только с тегом.

Поддерживает:
- Загрузку с проверкой структуры
- Сохранение с детерминированным форматированием (отступ 2 пробела)
- Построение словаря id -> запись с обнаружением дубликатов
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .errors import (
    CatalogNotFoundError,
    CatalogParseError,
    CatalogReadError,
    DuplicateKeyError,
)

logger = logging.getLogger(__name__)

# < > &, перед которыми нечётное число обратных слешей
_HTML_ESCAPE_RE = re.compile(r'(?<!\\)((?:\\\\)*)\\u00(3c|3e|26)', re.IGNORECASE)
_HTML_UNESCAPED = {"3c": "<", "3e": ">", "26": "&"}


@dataclass(frozen=True)
class SingleTranslation:
    """Перевод одной строкой."""
    text: str

    def values(self) -> List[str]:
        return [self.text]

    def to_json(self):
        return self.text


@dataclass(frozen=True)
class PluralTranslation:
    """Перевод с формами множественного числа: категория -> строка."""
    forms: Dict[str, str] = field(default_factory=dict)

    def values(self) -> List[str]:
        return [self.forms[category] for category in sorted(self.forms)]

    def to_json(self):
        return {category: self.forms[category] for category in sorted(self.forms)}


Translation = Union[SingleTranslation, PluralTranslation]


def parse_translation(raw, path="") -> Optional[Translation]:
    """
    Определяет форму перевода по JSON.

    Returns:
        SingleTranslation, PluralTranslation или None (перевода нет)

    Raises:
        CatalogParseError: неизвестная форма (число, список, вложенный объект)
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        return SingleTranslation(raw)
    if isinstance(raw, dict):
        for category, value in raw.items():
            if not isinstance(value, str):
                raise CatalogParseError(
                    path, f"форма '{category}' перевода должна быть строкой, "
                          f"получено {type(value).__name__}"
                )
        return PluralTranslation(dict(raw))
    raise CatalogParseError(
        path, f"неожиданный тип перевода: {type(raw).__name__}"
    )


@dataclass
class StringEntry:
    """Запись каталога."""
    id: str
    translation: Optional[Translation] = None
    modified: bool = False

    def translations(self) -> List[str]:
        """Все значения перевода (одно или по каждой форме)."""
        if self.translation is None:
            return []
        return self.translation.values()

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "translation": self.translation.to_json() if self.translation is not None else None,
            "modified": self.modified,
        }

    @classmethod
    def from_dict(cls, data, path="") -> "StringEntry":
        if not isinstance(data, dict):
            raise CatalogParseError(
                path, f"запись должна быть объектом, получено {type(data).__name__}"
            )
        entry_id = data.get("id")
        if not isinstance(entry_id, str):
            raise CatalogParseError(path, f"у записи нет строкового id: {data!r}")
        modified = data.get("modified", False)
        if not isinstance(modified, bool):
            raise CatalogParseError(path, f"поле modified записи '{entry_id}' не bool")
        return cls(
            id=entry_id,
            translation=parse_translation(data.get("translation"), path),
            modified=modified,
        )


class Catalog:
    """
    Упорядоченный набор записей одного файла.

    Порядок записей сохраняется как в файле; уникальность id
    проверяется в to_map().
    """

    def __init__(self, entries: Optional[List[StringEntry]] = None,
                 path: Optional[Path] = None):
        self.entries: List[StringEntry] = list(entries or [])
        self.path = Path(path) if path is not None else None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[StringEntry]:
        return iter(self.entries)

    def __repr__(self) -> str:
        return f"Catalog(path={self.path!r}, entries={len(self.entries)})"

    @property
    def ids(self) -> List[str]:
        return [entry.id for entry in self.entries]

    @classmethod
    def load(cls, path) -> "Catalog":
        """
        Загружает каталог из файла.

        Пустой файл (или JSON null) даёт пустой каталог.

        Raises:
            CatalogNotFoundError: файла нет
            CatalogParseError: содержимое не UTF-8 JSON-массив записей
            CatalogReadError: файл не удалось прочитать
        """
        path = Path(path)
        if not path.is_file():
            raise CatalogNotFoundError(path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except UnicodeDecodeError as e:
            raise CatalogParseError(path, f"файл не в UTF-8: {e}") from e
        except OSError as e:
            raise CatalogReadError(path, e) from e

        if not content.strip():
            return cls([], path)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CatalogParseError(path, str(e)) from e
        except RecursionError as e:
            raise CatalogParseError(path, "слишком глубокая вложенность JSON") from e

        if data is None:
            return cls([], path)
        if not isinstance(data, list):
            raise CatalogParseError(
                path, f"ожидался JSON-массив, получено {type(data).__name__}"
            )

        return cls([StringEntry.from_dict(item, path) for item in data], path)

    def to_map(self) -> Dict[str, StringEntry]:
        """
        Строит словарь id -> запись.

        Raises:
            DuplicateKeyError: id встречается повторно
        """
        return create_entry_map(self.entries, self.path)

    def sorted(self) -> "Catalog":
        """Копия каталога, отсортированная по id."""
        return Catalog(sorted(self.entries, key=lambda e: e.id), self.path)

    def to_json(self) -> str:
        data = json.dumps([entry.to_dict() for entry in self.entries],
                          ensure_ascii=False, indent=2)
        return unescape_html(data)

    def save(self, path=None, dry_run: bool = False,
             allow_empty: bool = False) -> bool:
        """
        Сохраняет каталог (полная перезапись файла).

        Пустой каталог не пишется, существующий файл остаётся как есть,
        если не задан allow_empty.

        Returns:
            True если файл записан
        """
        path = Path(path) if path is not None else self.path
        if path is None:
            raise ValueError("не указан путь для сохранения каталога")

        data = self.to_json()

        if dry_run:
            logger.debug("dry-run: пропущена запись %s", path)
            return False
        if not self.entries and not allow_empty:
            logger.debug("Пустой каталог не сохраняется: %s", path)
            return False

        with open(path, "w", encoding="utf-8") as f:
            f.write(data)
        return True


def load_catalog(path) -> Catalog:
    return Catalog.load(path)


def save_catalog(entries: List[StringEntry], path, dry_run: bool = False) -> bool:
    return Catalog(entries).save(path, dry_run=dry_run)


def create_entry_map(entries: List[StringEntry],
                     path=None) -> Dict[str, StringEntry]:
    """Словарь id -> запись; дубликат id - DuplicateKeyError."""
    entry_map: Dict[str, StringEntry] = {}
    for entry in entries:
        if entry.id in entry_map:
            raise DuplicateKeyError(entry.id, str(path) if path else None)
        entry_map[entry.id] = entry
    return entry_map


def unescape_html(data: str) -> str:
    """
    Возвращает <, > и & вместо \\u003c, \\u003e, \\u0026 в JSON-тексте.

    json.dumps сам эти символы не экранирует; нормализует текст,
    полученный извне (например, от Go json.Marshal).
    """
    return _HTML_ESCAPE_RE.sub(
        lambda m: m.group(1) + _HTML_UNESCAPED[m.group(2).lower()], data
    )


def check_file(path) -> Tuple[str, str]:
    """
    Проверяет, что файл существует.

    Returns:
        (имя файла, директория)
    """
    path = Path(path)
    if not path.is_file():
        raise CatalogNotFoundError(path)
    return path.name, str(path.parent)


def create_output_dirs(dirname) -> None:
    """Создаёт выходную директорию, если её нет."""
    if dirname and not os.path.isdir(dirname):
        os.makedirs(dirname, exist_ok=True)
        logger.info("Создана директория %s", dirname)
