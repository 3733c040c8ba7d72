#!/usr/bin/env python3
"""
Manager - CLI для слияния и проверки каталогов строк.

Команды:
  merge-strings   Объединяет шарды <marker>.<lang>.json в <lang>.all.json
  verify-strings  Проверяет целевые каталоги против исходного

Использование:
  i18n-catalog merge-strings -d i18n/resources -r --source-language en
  i18n-catalog verify-strings -f i18n/resources/en.all.json --languages fr,de
  python -m i18n_catalog verify-strings -f en.all.json --language-files fr.json -o diff/
"""

import argparse
import sys
from typing import Dict, List, Optional

from .config import CatalogOptions, load_config, setup_logging
from .errors import CatalogError
from .merger import MergeStrings
from .verifier import VerifyStrings


def cmd_merge_strings(options: CatalogOptions) -> int:
    """Команда: слияние шардов."""
    merger = MergeStrings.from_options(options)
    combined = merger.run()

    for catalog in combined.values():
        print(f"  {catalog.path}: {len(catalog)} строк")
    if options.dry_run:
        print("  (dry-run: файлы не записаны)")
    return 0


def cmd_verify_strings(options: CatalogOptions) -> int:
    """Команда: проверка переводов."""
    if not options.filename:
        print("i18n: не указан исходный файл (-f)", file=sys.stderr)
        return 2

    verifier = VerifyStrings.from_options(options)
    results = verifier.run()
    for result in results:
        print(f"  ✅ {result.target}")
    return 0


def _cli_overrides(args) -> Dict:
    """Параметры, явно переданные в командной строке."""
    overrides = {
        "verbose": True if args.verbose else None,
        "dry_run": True if args.dry_run else None,
        "source_language": args.source_language,
        "max_workers": args.max_workers,
    }
    if args.command == "merge-strings":
        overrides.update({
            "directory": args.directory,
            "recurse": True if args.recurse else None,
            "shard_marker": args.shard_marker,
        })
    else:
        overrides.update({
            "filename": args.filename,
            "output_dir": args.output_dir,
            "languages": args.languages,
            "language_files": args.language_files,
        })
    return overrides


def build_parser() -> argparse.ArgumentParser:
    """Строит парсер аргументов."""
    parser = argparse.ArgumentParser(
        prog="i18n-catalog",
        description="Слияние и проверка каталогов строк",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры:
  # Слияние шардов во всех поддиректориях
  i18n-catalog merge-strings -d i18n/resources -r

  # Проверка переводов на французский и немецкий
  i18n-catalog verify-strings -f i18n/resources/en.all.json --languages fr,de
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true",
                        help="Подробный вывод")
    common.add_argument("--dry-run", action="store_true",
                        help="Не записывать файлы")
    common.add_argument("--source-language", default=None,
                        help="Исходный язык (по умолчанию: en)")
    common.add_argument("--max-workers", type=int, default=None,
                        help="Число параллельных загрузок (по умолчанию: число CPU)")
    common.add_argument("--config", default=None,
                        help="YAML-файл конфигурации (по умолчанию: .i18n-catalog.yaml)")

    subparsers = parser.add_subparsers(dest="command", help="Команда")

    # === merge-strings ===
    p_merge = subparsers.add_parser("merge-strings", parents=[common],
                                    help="Объединить шарды каталогов")
    p_merge.add_argument("-d", "--directory", default=None,
                         help="Директория с шардами")
    p_merge.add_argument("-r", "--recurse", action="store_true",
                         help="Обходить поддиректории")
    p_merge.add_argument("--shard-marker", default=None,
                         help="Маркер шардов в имени файла (по умолчанию: go)")

    # === verify-strings ===
    p_verify = subparsers.add_parser("verify-strings", parents=[common],
                                     help="Проверить переводы")
    p_verify.add_argument("-f", "--filename", default=None,
                          help="Исходный каталог")
    p_verify.add_argument("-o", "--output-dir", default=None,
                          help="Директория для diff-файлов")
    p_verify.add_argument("--languages", default=None,
                          help="Целевые языки через запятую")
    p_verify.add_argument("--language-files", default=None,
                          help="Целевые файлы через запятую")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Точка входа CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    commands = {
        "merge-strings": cmd_merge_strings,
        "verify-strings": cmd_verify_strings,
    }

    try:
        options = load_config(args.config).update(_cli_overrides(args))
        setup_logging(options.verbose)
        return commands[args.command](options)
    except CatalogError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
