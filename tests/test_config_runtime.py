"""Tests for .kodrdriv/config.yaml and environment overrides."""

from kodrdriv.config_runtime import DEFAULTS, load_runtime_config


def _write_config(root, text, config_dir=".kodrdriv"):
    directory = root / config_dir
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "config.yaml").write_text(text)


def test_defaults_without_file(tmp_path):
    assert load_runtime_config(str(tmp_path)) == DEFAULTS


def test_file_values_override_defaults(tmp_path):
    _write_config(tmp_path, "tree:\n  directories: [packages, apps]\n  exclude: ['**/examples/**']\n")

    cfg = load_runtime_config(str(tmp_path))

    assert cfg["tree"]["directories"] == ["packages", "apps"]
    assert cfg["tree"]["exclude"] == ["**/examples/**"]
    assert cfg["tree"]["executable"] == "kodrdriv"


def test_unknown_and_mistyped_keys_are_ignored(tmp_path):
    _write_config(tmp_path, "tree:\n  directories: packages\n  colour: blue\nextra: 1\n")

    cfg = load_runtime_config(str(tmp_path))

    assert cfg["tree"]["directories"] == []
    assert "colour" not in cfg["tree"]
    assert "extra" not in cfg


def test_custom_config_dir(tmp_path):
    _write_config(tmp_path, "paths:\n  output_directory: build\n", config_dir="conf")

    assert load_runtime_config(str(tmp_path), "conf")["paths"]["output_directory"] == "build"


def test_invalid_yaml_falls_back_to_defaults(tmp_path, log_messages):
    _write_config(tmp_path, "tree: [unclosed\n")

    assert load_runtime_config(str(tmp_path)) == DEFAULTS
    assert any("Could not load config file" in m for m in log_messages)


def test_environment_wins_over_file(tmp_path, monkeypatch):
    _write_config(tmp_path, "tree:\n  exclude: [legacy]\n")
    monkeypatch.setenv("KODRDRIV_TREE_EXCLUDE", "old, tmp")
    monkeypatch.setenv("KODRDRIV_TREE_EXECUTABLE", "/opt/bin/kodrdriv")

    cfg = load_runtime_config(str(tmp_path))

    assert cfg["tree"]["exclude"] == ["old", "tmp"]
    assert cfg["tree"]["executable"] == "/opt/bin/kodrdriv"


def test_defaults_are_not_mutated(tmp_path):
    _write_config(tmp_path, "tree:\n  directories: [packages]\n")

    load_runtime_config(str(tmp_path))

    assert DEFAULTS["tree"]["directories"] == []
