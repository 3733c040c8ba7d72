import threading

import pytest

from i18n_catalog.catalog import Catalog, StringEntry
from i18n_catalog.errors import (
    CatalogNotFoundError,
    CatalogParseError,
    PermitAcquisitionError,
)
from i18n_catalog.merger import CombinedMap, MergeStrings, PermitPool


@pytest.fixture
def shards(tmp_path, write_catalog):
    write_catalog(tmp_path / "cmds.go.en.json", [
        {"id": "zeta", "translation": "zeta"},
        {"id": "alpha", "translation": "alpha"},
    ])
    write_catalog(tmp_path / "app.go.en.json", [
        {"id": "alpha", "translation": "alpha"},
        {"id": "mid", "translation": "mid"},
    ])
    write_catalog(tmp_path / "app.go.fr.json", [
        {"id": "french-only", "translation": "x"},
    ])
    return tmp_path


def test_merge_dedups_and_sorts(shards, read_catalog):
    combined = MergeStrings(shards, source_language="en").run()

    data = read_catalog(shards / "en.all.json")
    assert [item["id"] for item in data] == ["alpha", "mid", "zeta"]
    assert list(combined) == [str(shards)]
    assert combined[str(shards)].ids == ["alpha", "mid", "zeta"]


def test_merge_ignores_other_languages(shards):
    MergeStrings(shards, source_language="en").run()
    ids = Catalog.load(shards / "en.all.json").ids
    assert "french-only" not in ids


def test_merge_is_idempotent(shards):
    MergeStrings(shards, source_language="en").run()
    first = (shards / "en.all.json").read_bytes()
    MergeStrings(shards, source_language="en").run()
    assert (shards / "en.all.json").read_bytes() == first


def test_merge_order_independent_of_worker_count(tmp_path, write_catalog):
    for i in range(40):
        write_catalog(tmp_path / f"pkg{i}.go.en.json", [
            {"id": f"id-{(i * 7) % 40:02d}", "translation": "x"},
            {"id": "shared", "translation": "shared"},
        ])

    serial = MergeStrings(tmp_path, max_workers=1, dry_run=True).run()[str(tmp_path)]
    parallel = MergeStrings(tmp_path, max_workers=8, dry_run=True).run()[str(tmp_path)]

    assert serial.ids == parallel.ids
    assert parallel.ids == sorted(parallel.ids)
    assert parallel.ids.count("shared") == 1
    assert len(parallel.ids) == 41


def test_merge_dry_run_writes_nothing(shards):
    combined = MergeStrings(shards, dry_run=True).run()
    assert not (shards / "en.all.json").exists()
    assert combined[str(shards)].ids == ["alpha", "mid", "zeta"]


def test_merge_without_shards_writes_nothing(tmp_path):
    assert MergeStrings(tmp_path).run() == {}
    assert not (tmp_path / "en.all.json").exists()


def test_merge_custom_marker(tmp_path, write_catalog):
    write_catalog(tmp_path / "ui.py.de.json", [{"id": "b"}, {"id": "a"}])
    MergeStrings(tmp_path, source_language="de", shard_marker="py").run()
    assert Catalog.load(tmp_path / "de.all.json").ids == ["a", "b"]


def test_merge_recurses_depth_first(shards, write_catalog):
    write_catalog(shards / "sub" / "x.go.en.json", [{"id": "sub-only"}])
    write_catalog(shards / "sub" / "deeper" / "y.go.en.json", [{"id": "deep"}])

    combined = MergeStrings(shards, recurse=True).run()

    assert list(combined) == [str(shards), str(shards / "sub"), str(shards / "sub" / "deeper")]
    assert Catalog.load(shards / "sub" / "en.all.json").ids == ["sub-only"]
    assert Catalog.load(shards / "sub" / "deeper" / "en.all.json").ids == ["deep"]


def test_merge_without_recurse_skips_subdirectories(shards, write_catalog):
    write_catalog(shards / "sub" / "x.go.en.json", [{"id": "sub-only"}])
    MergeStrings(shards).run()
    assert not (shards / "sub" / "en.all.json").exists()


def test_merge_fails_on_malformed_shard(shards):
    (shards / "broken.go.en.json").write_text("{oops", encoding="utf-8")

    with pytest.raises(CatalogParseError):
        MergeStrings(shards).run()
    assert not (shards / "en.all.json").exists()


def test_subdirectory_failure_propagates(shards):
    sub = shards / "sub"
    sub.mkdir()
    (sub / "broken.go.en.json").write_text("42", encoding="utf-8")

    with pytest.raises(CatalogParseError):
        MergeStrings(shards, recurse=True).run()
    # родительская директория уже обработана
    assert (shards / "en.all.json").exists()


def test_merge_missing_directory(tmp_path):
    with pytest.raises(CatalogNotFoundError):
        MergeStrings(tmp_path / "nope").run()


def test_merge_cancelled(shards):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(PermitAcquisitionError):
        MergeStrings(shards, cancel_event=cancel).run()


def test_permit_pool_blocks_then_fails_on_cancel():
    pool = PermitPool(1)
    pool.acquire()

    errors = []

    def waiter():
        try:
            pool.acquire()
        except PermitAcquisitionError as e:
            errors.append(e)

    thread = threading.Thread(target=waiter)
    thread.start()
    pool.cancel()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert len(errors) == 1


def test_permit_pool_size():
    with pytest.raises(ValueError):
        PermitPool(0)


def test_combined_map_first_writer_wins():
    combined = CombinedMap()
    first = StringEntry("a")
    stored, inserted = combined.load_or_store(first)
    assert inserted and stored is first

    stored, inserted = combined.load_or_store(StringEntry("a", modified=True))
    assert not inserted and stored is first
    assert len(combined) == 1


def test_combined_map_concurrent_inserts():
    combined = CombinedMap()
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        for i in range(200):
            combined.load_or_store(StringEntry(f"id-{i}"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(combined) == 200
    assert sorted(e.id for e in combined.values()) == sorted(f"id-{i}" for i in range(200))


def test_merge_fails_on_undecodable_shard(shards):
    (shards / "latin1.go.en.json").write_bytes(b'[{"id": "caf\xe9"}]')
    with pytest.raises(CatalogParseError):
        MergeStrings(shards).run()
