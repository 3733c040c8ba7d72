"""
Placeholders - анализ именованных аргументов в шаблонных строках.

Распознаются два вида токенов:
    {{.Name}}   - Go-шаблон (основной формат каталогов)
    {name}      - одинарные фигурные скобки

Аргумент count связан с множественным числом и считается
присутствующим в переводе всегда.
"""

import logging
import re
from typing import Iterable, Set

from .catalog import StringEntry

logger = logging.getLogger(__name__)

COUNT_ARG = "count"

_PLACEHOLDER_RE = re.compile(
    r'\{\{\s*\.([^{}\s]+?)\s*\}\}'      # {{.Name}}
    r'|(?<!\{)\{(\w+)\}(?!\})'          # {name}
)


def is_templated(text: str) -> bool:
    """Есть ли в строке хотя бы один плейсхолдер."""
    return bool(text) and _PLACEHOLDER_RE.search(text) is not None


def extract_args(text: str) -> Set[str]:
    """Множество имён аргументов, на которые ссылается строка."""
    if not text:
        return set()
    return {m.group(1) or m.group(2) for m in _PLACEHOLDER_RE.finditer(text)}


def missing_args(id_args: Iterable[str], translation_args: Set[str]) -> Set[str]:
    """Аргументы id, которых нет в переводе (кроме count)."""
    return {arg for arg in id_args if arg not in translation_args and arg != COUNT_ARG}


def excess_args(id_args: Set[str], translation_args: Iterable[str]) -> Set[str]:
    """Аргументы перевода, которых id не объявляет."""
    return {arg for arg in translation_args if arg not in id_args}


def is_translation_invalid(entry: StringEntry) -> bool:
    """
    Проверяет, что перевод шаблонной строки сохраняет её аргументы.

    Для нешаблонного id всегда False. Иначе каждое значение перевода
    (строка или каждая форма множественного числа) должно быть шаблонным
    и ссылаться ровно на аргументы id; count можно опустить.
    Первое нарушение - True.
    """
    if not is_templated(entry.id):
        return False

    id_args = extract_args(entry.id)
    for translation in entry.translations():
        if not is_templated(translation):
            logger.warning(
                "Шаблонная строка '%s': перевод без плейсхолдеров: %s",
                entry.id, translation,
            )
            return True

        translation_args = extract_args(translation)

        missing = missing_args(id_args, translation_args)
        if missing:
            logger.warning(
                "Шаблонная строка '%s': в переводе нет аргументов: %s",
                entry.id, ",".join(sorted(missing)),
            )
            return True

        excess = excess_args(id_args, translation_args)
        if excess:
            logger.warning(
                "Шаблонная строка '%s': лишние аргументы в переводе: %s",
                entry.id, ",".join(sorted(excess)),
            )
            return True

    return False
