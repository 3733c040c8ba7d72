"""
i18n_catalog - слияние и проверка каталогов строк.

Модули:
- catalog: Загрузка/сохранение каталогов (JSON-массив записей)
- placeholders: Аргументы шаблонных строк и их проверка в переводах
- merger: Параллельное слияние шардов в <lang>.all.json
- verifier: Проверка целевых каталогов, diff-файлы missing/extra/invalid
- config: Параметры и YAML-конфиг
- manager: CLI merge-strings / verify-strings
"""

from .catalog import (
    Catalog,
    PluralTranslation,
    SingleTranslation,
    StringEntry,
    load_catalog,
    save_catalog,
)
from .errors import (
    CatalogError,
    CatalogNotFoundError,
    CatalogParseError,
    CatalogReadError,
    ConfigError,
    DuplicateKeyError,
    EmptyCatalogError,
    InconsistencyError,
    PermitAcquisitionError,
)
from .merger import MergeStrings
from .placeholders import extract_args, is_templated, is_translation_invalid
from .verifier import TargetResult, VerificationDiff, VerifyStrings

__version__ = "0.1.0"
