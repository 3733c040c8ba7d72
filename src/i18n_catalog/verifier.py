#!/usr/bin/env python3
"""
Verifier - проверка целевых каталогов против исходного.

Для каждого целевого каталога вычисляются три набора:
    extra    - id есть в целевом, нет в исходном
    invalid  - id есть в обоих, но перевод шаблонной строки теряет
               или добавляет аргументы
    missing  - id есть в исходном, нет в целевом

Каждый непустой набор сохраняется рядом с целевым файлом (или в output_dir)
как <имя>.<вид>.diff.json, а для цели фиксируется InconsistencyError.

Ошибки исходного каталога (нет файла, пустой, дубликаты) прерывают всю
проверку. Ошибка загрузки целевого каталога - только эту цель.

Использование:
    verifier = VerifyStrings("i18n/en.all.json", languages=["fr", "de"])
    results = verifier.run()
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .catalog import Catalog, StringEntry, check_file, create_output_dirs
from .errors import CatalogError, EmptyCatalogError, InconsistencyError
from .placeholders import is_templated, is_translation_invalid

logger = logging.getLogger(__name__)

# Порядок проверок: при нескольких расхождениях итоговой ошибкой
# цели становится последняя (missing)
DIFF_KINDS = ("extra", "invalid", "missing")


@dataclass
class VerificationDiff:
    """Расхождения одного целевого каталога с исходным."""
    missing: List[StringEntry] = field(default_factory=list)
    extra: List[StringEntry] = field(default_factory=list)
    invalid: List[StringEntry] = field(default_factory=list)

    def get(self, kind: str) -> List[StringEntry]:
        return getattr(self, kind)

    @property
    def is_empty(self) -> bool:
        return not (self.missing or self.extra or self.invalid)


@dataclass
class TargetResult:
    """Результат проверки одного целевого файла."""
    target: str
    diff: Optional[VerificationDiff] = None
    error: Optional[Exception] = None
    diff_files: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None


def inconsistency_message(kind: str, ids: List[str]) -> str:
    if kind == "extra":
        return f"i18n: в целевом файле лишние строки с ID: {','.join(ids)}"
    if kind == "invalid":
        return f"i18n: в целевом файле некорректные шаблонные переводы с ID: {','.join(ids)}"
    return "i18n: в целевом файле не хватает строк с ID:\n" + "\n".join(ids)


class VerifyStrings:
    """Проверка полноты и согласованности переводов."""

    def __init__(self, filename, source_language: str = "en",
                 languages: Optional[List[str]] = None,
                 language_files: Optional[List[str]] = None,
                 output_dir: str = "", dry_run: bool = False):
        self.filename = Path(filename)
        self.source_language = source_language
        self.languages = list(languages or [])
        self.language_files = list(language_files or [])
        self.output_dir = output_dir
        self.dry_run = dry_run
        self.results: List[TargetResult] = []

    @classmethod
    def from_options(cls, options) -> "VerifyStrings":
        return cls(
            filename=options.filename,
            source_language=options.source_language,
            languages=options.languages,
            language_files=options.language_files,
            output_dir=options.output_dir,
            dry_run=options.dry_run,
        )

    def determine_target_filenames(self) -> List[Path]:
        """
        Целевые файлы: явный список, либо имя исходного файла с заменой
        тега исходного языка на каждый из languages.
        """
        if self.language_files:
            return [Path(name) for name in self.language_files]

        name = self.filename.name
        return [
            self.filename.parent / name.replace(self.source_language, lang)
            for lang in self.languages
        ]

    def run(self) -> List[TargetResult]:
        """
        Проверяет все целевые файлы по порядку.

        Returns:
            результаты по каждой цели, если ошибок нет

        Raises:
            CatalogError исходного каталога - сразу
            ошибка последней неуспешной цели - после проверки всех целей
        """
        check_file(self.filename)

        targets = self.determine_target_filenames()
        logger.info("Целевые файлы: %s", ", ".join(str(t) for t in targets))

        self.results = []
        last_error: Optional[Exception] = None
        for target in targets:
            result = self.verify(self.filename, target)
            self.results.append(result)
            if result.error is not None:
                logger.info("Ошибка проверки целевого файла %s: %s", target, result.error)
                last_error = result.error

        if last_error is not None:
            raise last_error
        return self.results

    def load_source(self, source) -> Dict[str, StringEntry]:
        """
        Загружает исходный каталог как словарь id -> запись.

        Raises:
            EmptyCatalogError, DuplicateKeyError, CatalogNotFoundError,
            CatalogParseError
        """
        catalog = Catalog.load(source)
        if not catalog:
            raise EmptyCatalogError(source)
        return catalog.to_map()

    def compute_diff(self, input_map: Dict[str, StringEntry],
                     target_catalog: Catalog) -> VerificationDiff:
        """Сравнивает целевой каталог с исходным словарём (словарь не меняется)."""
        remaining = dict(input_map)
        diff = VerificationDiff()

        for entry in target_catalog:
            if entry.id in remaining:
                if is_templated(entry.id) and is_translation_invalid(entry):
                    logger.warning("Некорректный шаблонный перевод, ID: %s", entry.id)
                    diff.invalid.append(entry)
                del remaining[entry.id]
            else:
                logger.warning("Лишний ключ в целевом файле, ID: %s", entry.id)
                diff.extra.append(entry)

        diff.missing = sorted(remaining.values(), key=lambda e: e.id)
        return diff

    def verify(self, source, target) -> TargetResult:
        """
        Проверяет один целевой файл.

        Ошибки исходного каталога пробрасываются, ошибки цели
        записываются в TargetResult.error.
        """
        target = Path(target)
        result = TargetResult(target=str(target))

        input_map = self.load_source(source)

        try:
            target_catalog = Catalog.load(target)
        except CatalogError as e:
            logger.info("Ошибка загрузки целевого файла %s", target)
            result.error = e
            return result

        diff = self.compute_diff(input_map, target_catalog)
        result.diff = diff

        for kind in DIFF_KINDS:
            entries = diff.get(kind)
            if not entries:
                continue

            logger.warning("Целевой файл %s: %s строк вида %s", target, len(entries), kind)
            try:
                diff_filename = self.generate_diff_file(kind, entries, target)
            except OSError as e:
                logger.error("Не удалось создать diff-файл: %s", e)
                result.error = e
                return result
            result.diff_files[kind] = str(diff_filename)
            logger.info("Создан diff-файл: %s", diff_filename)

            ids = [entry.id for entry in entries]
            result.error = InconsistencyError(
                kind, ids, inconsistency_message(kind, ids),
                target=str(target), diff=diff,
            )

        if isinstance(result.error, InconsistencyError):
            result.error.diff_files = list(result.diff_files.values())
        return result

    def diff_filename(self, kind: str, target) -> Path:
        name = f"{Path(target).name}.{kind}.diff.json"
        if self.output_dir:
            return Path(self.output_dir) / name
        return Path(target).parent / name

    def generate_diff_file(self, kind: str, entries: List[StringEntry], target) -> Path:
        """Сохраняет набор расхождений как каталог."""
        check_file(target)
        if self.output_dir and not self.dry_run:
            create_output_dirs(self.output_dir)
        path = self.diff_filename(kind, target)
        Catalog(entries, path).save(dry_run=self.dry_run)
        return path
