"""
Errors - иерархия исключений для работы с каталогами строк.

Структурные ошибки (файл не найден, битый JSON, дубликат ключа,
сбой пула разрешений) прерывают операцию. InconsistencyError -
не сбой системы, а результат проверки: рядом всегда лежит diff-файл.
"""

from typing import List, Optional


class CatalogError(Exception):
    """Базовая ошибка каталогов."""


class CatalogNotFoundError(CatalogError, FileNotFoundError):
    """Файл каталога не существует."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"i18n: файл каталога не найден: {self.path}")

    def __str__(self) -> str:
        return self.args[0]


class CatalogParseError(CatalogError, ValueError):
    """Содержимое файла не является JSON-массивом записей."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"i18n: ошибка разбора {self.path}: {reason}")


class CatalogReadError(CatalogError, OSError):
    """Файл каталога есть, но прочитать его не удалось (права и т.п.)."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"i18n: не удалось прочитать {self.path}: {reason}")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateKeyError(CatalogError):
    """Один и тот же id встречается в каталоге дважды."""

    def __init__(self, key: str, path: Optional[str] = None):
        self.key = key
        self.path = path
        message = f"i18n: дубликат ключа: {key}"
        if path:
            message = f"i18n: в файле {path} дублируется ключ: {key}"
        super().__init__(message)


class EmptyCatalogError(CatalogError):
    """Исходный каталог пуст - это ошибка конфигурации."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"i18n: исходный файл {self.path} пуст")


class PermitAcquisitionError(CatalogError):
    """Не удалось получить разрешение из пула воркеров (отмена)."""


class ConfigError(CatalogError):
    """Некорректный файл конфигурации."""


class InconsistencyError(CatalogError):
    """
    Целевой каталог не совпадает с исходным.

    kind - вид расхождения (extra | invalid | missing), ids - его ключи.
    diff и diff_files заполняет верификатор.
    """

    def __init__(self, kind: str, ids: List[str], message: str,
                 target: str = "", diff=None, diff_files: Optional[List[str]] = None):
        self.kind = kind
        self.ids = list(ids)
        self.target = target
        self.diff = diff
        self.diff_files = list(diff_files or [])
        super().__init__(message)
