#!/usr/bin/env python3
"""
Merger - объединение шард-файлов каталогов в один каталог на директорию.

Шард - файл, в имени которого есть "<marker>.<lang>.json"
(например, cmds.go.en.json). Все шарды директории загружаются
параллельно, записи дедуплицируются по id, сортируются и сохраняются в
<directory>/<lang>.all.json. С recurse то же делается для каждой
поддиректории (в глубину).

Использование:
    merger = MergeStrings("i18n/resources", source_language="en", recurse=True)
    combined = merger.run()     # {директория: Catalog}
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .catalog import Catalog, StringEntry
from .errors import CatalogNotFoundError, PermitAcquisitionError

logger = logging.getLogger(__name__)

DEFAULT_SHARD_MARKER = "go"
COMBINED_SUFFIX = ".all.json"

# Как часто ожидающий разрешения поток проверяет отмену (сек)
_PERMIT_POLL_INTERVAL = 0.05


def default_max_workers() -> int:
    return os.cpu_count() or 1


class PermitPool:
    """
    Пул разрешений фиксированного размера.

    Ограничивает число одновременно загружаемых шардов. После cancel()
    (или установки внешнего cancel_event) ожидающие и новые acquire()
    сразу падают с PermitAcquisitionError.
    """

    def __init__(self, size: int, cancel_event: Optional[threading.Event] = None):
        if size < 1:
            raise ValueError(f"размер пула должен быть >= 1, получено {size}")
        self.size = size
        self._semaphore = threading.BoundedSemaphore(size)
        self._failed = threading.Event()
        self._cancel_event = cancel_event

    @property
    def cancelled(self) -> bool:
        return self._failed.is_set() or (
            self._cancel_event is not None and self._cancel_event.is_set()
        )

    def cancel(self) -> None:
        self._failed.set()

    def acquire(self) -> None:
        while True:
            if self.cancelled:
                raise PermitAcquisitionError("i18n: ошибка получения разрешения: операция отменена")
            if self._semaphore.acquire(timeout=_PERMIT_POLL_INTERVAL):
                break
        if self.cancelled:
            self._semaphore.release()
            raise PermitAcquisitionError("i18n: ошибка получения разрешения: операция отменена")

    def release(self) -> None:
        self._semaphore.release()


class CombinedMap:
    """
    Общий словарь id -> запись для одного слияния.

    Вставка только если id ещё нет: побеждает первая записавшая задача.
    """

    def __init__(self):
        self._entries: Dict[str, StringEntry] = {}
        self._lock = threading.Lock()

    def load_or_store(self, entry: StringEntry) -> Tuple[StringEntry, bool]:
        """
        Returns:
            (запись в словаре, True если вставлена эта)
        """
        with self._lock:
            existing = self._entries.get(entry.id)
            if existing is not None:
                return existing, False
            self._entries[entry.id] = entry
            return entry, True

    def values(self) -> List[StringEntry]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class _FirstError:
    """Запоминает первую ошибку среди параллельных задач."""

    def __init__(self):
        self._error: Optional[BaseException] = None
        self._lock = threading.Lock()

    def set(self, error: BaseException) -> None:
        with self._lock:
            if self._error is None:
                self._error = error

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


def get_files_and_dirs(directory: Path) -> Tuple[List[Path], List[Path]]:
    """Разделяет содержимое директории на файлы и поддиректории."""
    files, dirs = [], []
    with os.scandir(directory) as it:
        for item in it:
            if item.is_dir():
                dirs.append(Path(item.path))
            else:
                files.append(Path(item.path))
    return files, dirs


class MergeStrings:
    """Слияние шардов каталогов по директориям."""

    def __init__(self, directory, source_language: str = "en",
                 recurse: bool = False, dry_run: bool = False,
                 max_workers: Optional[int] = None,
                 shard_marker: str = DEFAULT_SHARD_MARKER,
                 cancel_event: Optional[threading.Event] = None):
        self.directory = Path(directory)
        self.source_language = source_language
        self.recurse = recurse
        self.dry_run = dry_run
        self.max_workers = max_workers or default_max_workers()
        self.shard_marker = shard_marker
        self.cancel_event = cancel_event
        self.results: Dict[str, Catalog] = {}

    @classmethod
    def from_options(cls, options, cancel_event: Optional[threading.Event] = None) -> "MergeStrings":
        return cls(
            directory=options.directory,
            source_language=options.source_language,
            recurse=options.recurse,
            dry_run=options.dry_run,
            max_workers=options.max_workers,
            shard_marker=options.shard_marker,
            cancel_event=cancel_event,
        )

    @property
    def language_matcher(self) -> str:
        return f"{self.shard_marker}.{self.source_language}.json"

    def combined_path(self, directory: Path) -> Path:
        return Path(directory) / f"{self.source_language}{COMBINED_SUFFIX}"

    def run(self) -> Dict[str, Catalog]:
        """
        Запускает слияние.

        Returns:
            {директория: объединённый каталог} для непустых результатов

        Raises:
            CatalogNotFoundError, CatalogParseError - ошибка загрузки шарда
            PermitAcquisitionError - отмена до запуска всех задач
        """
        if not self.directory.is_dir():
            raise CatalogNotFoundError(self.directory)
        self.results = {}
        self._combine_directory(self.directory)
        return self.results

    def match_files(self, files: List[Path]) -> List[Path]:
        """Отбирает шарды исходного языка."""
        matched = []
        for path in files:
            if self.language_matcher in path.name:
                logger.info("Сканирование файла: %s", path)
                matched.append(path)
        return matched

    def merge_files(self, shard_files: List[Path]) -> List[StringEntry]:
        """
        Параллельно загружает шарды и дедуплицирует записи по id.

        Returns:
            записи, отсортированные по id
        """
        combined = CombinedMap()
        failure = _FirstError()
        pool = PermitPool(self.max_workers, self.cancel_event)
        acquire_error: Optional[PermitAcquisitionError] = None

        def load_shard(path: Path) -> int:
            try:
                catalog = Catalog.load(path)
                stored = 0
                for entry in catalog:
                    _, inserted = combined.load_or_store(entry)
                    stored += inserted
                return stored
            except Exception as e:
                failure.set(e)
                pool.cancel()
                raise
            finally:
                pool.release()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for path in shard_files:
                try:
                    pool.acquire()
                except PermitAcquisitionError as e:
                    acquire_error = e
                    break
                executor.submit(load_shard, path)

        if failure.error is not None:
            logger.debug("Слияние прервано: %s", failure.error)
            raise failure.error
        if acquire_error is not None:
            raise acquire_error

        return sorted(combined.values(), key=lambda e: e.id)

    def _combine_directory(self, directory: Path) -> None:
        files, directories = get_files_and_dirs(directory)
        shard_files = self.match_files(files)

        entries = self.merge_files(shard_files)
        catalog = Catalog(entries, self.combined_path(directory))
        catalog.save(dry_run=self.dry_run)
        if entries:
            self.results[str(directory)] = catalog
            logger.info("Сохранение объединённого файла: %s (%d строк)",
                        catalog.path, len(entries))

        if self.recurse:
            for subdirectory in sorted(directories):
                self._combine_directory(subdirectory)
