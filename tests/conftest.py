import json

import pytest


@pytest.fixture
def write_catalog():
    """Пишет список записей как JSON-каталог и возвращает путь."""
    def _write(path, entries):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(entries, ensure_ascii=False, indent=2), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def read_catalog():
    def _read(path):
        return json.loads(path.read_text(encoding="utf-8"))
    return _read
