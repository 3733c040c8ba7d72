import pytest

from i18n_catalog.config import CatalogOptions, load_config, parse_string_list
from i18n_catalog.errors import ConfigError


def test_parse_string_list():
    assert parse_string_list("fr, de,,es ") == ["fr", "de", "es"]
    assert parse_string_list("") == []
    assert parse_string_list(None) == []
    assert parse_string_list(["fr", " de "]) == ["fr", "de"]


def test_defaults_without_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    options = load_config()
    assert options.source_language == "en"
    assert options.shard_marker == "go"
    assert options.max_workers >= 1
    assert options.languages == []


def test_load_yaml_config(tmp_path):
    path = tmp_path / "i18n.yaml"
    path.write_text(
        "source_language: de\n"
        "recurse: true\n"
        "languages: fr,es\n"
        "language_files:\n"
        "  - a.json\n"
        "  - b.json\n"
        "max_workers: 3\n",
        encoding="utf-8",
    )

    options = load_config(str(path))

    assert options.source_language == "de"
    assert options.recurse is True
    assert options.languages == ["fr", "es"]
    assert options.language_files == ["a.json", "b.json"]
    assert options.max_workers == 3


def test_default_config_file_is_picked_up(tmp_path, monkeypatch):
    (tmp_path / ".i18n-catalog.yaml").write_text("dry_run: true\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert load_config().dry_run is True


def test_explicit_missing_config(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "absent.yaml"))


def test_unknown_key(tmp_path):
    path = tmp_path / "i18n.yaml"
    path.write_text("colour: blue\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path))


@pytest.mark.parametrize("content", ["a: [unclosed\n", "- just\n- a list\n"])
def test_malformed_config(tmp_path, content):
    path = tmp_path / "i18n.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_update_skips_none_values():
    options = CatalogOptions(source_language="fr").update({"source_language": None,
                                                            "languages": "de"})
    assert options.source_language == "fr"
    assert options.languages == ["de"]


def test_invalid_max_workers():
    with pytest.raises(ConfigError):
        CatalogOptions().update({"max_workers": 0})


def test_max_workers_from_quoted_yaml(tmp_path):
    path = tmp_path / "i18n.yaml"
    path.write_text('max_workers: "3"\n', encoding="utf-8")
    assert load_config(str(path)).max_workers == 3


@pytest.mark.parametrize("value", ["four", True, [2]])
def test_max_workers_not_a_number(value):
    with pytest.raises(ConfigError):
        CatalogOptions().update({"max_workers": value})
