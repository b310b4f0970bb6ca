import os

import pytest

from releaser.foundation.config_io import load_config

ENV_VAR = "TEST_RELEASER_CONFIG"


def test_load_config_base_only(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    (tmp_path / ".releaser.yaml").write_text("a: 1\nb:\n  c: 2\n", encoding="utf-8")

    cfg, meta = load_config(env_var=ENV_VAR, start_dir=tmp_path)

    assert cfg == {"a": 1, "b": {"c": 2}}
    assert meta["mode"] == "base"
    assert os.path.basename(meta["paths"][0]) == ".releaser.yaml"


def test_load_config_base_plus_local_overlay(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    (tmp_path / "releaser.yaml").write_text("a: 1\nb:\n  c: 2\nids: [x, y]\n", encoding="utf-8")
    (tmp_path / "releaser.local.yaml").write_text("b:\n  c: 3\n  d: 4\nids: [z]\n", encoding="utf-8")

    cfg, meta = load_config(env_var=ENV_VAR, start_dir=tmp_path)

    assert cfg == {"a": 1, "b": {"c": 3, "d": 4}, "ids": ["z"]}
    assert meta["mode"] == "base+local"
    assert len(meta["paths"]) == 2


def test_load_config_explicit_path(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_VAR, str(tmp_path / "ignored.yaml"))
    path = tmp_path / "custom.yml"
    path.write_text("project_name: demo\n", encoding="utf-8")

    cfg, meta = load_config(str(path), env_var=ENV_VAR)

    assert cfg == {"project_name": "demo"}
    assert meta["mode"] == "explicit"


def test_load_config_missing_explicit_path(tmp_path):
    with pytest.raises(FileNotFoundError, match=r"Missing config file"):
        load_config(str(tmp_path / "nope.yaml"), env_var=ENV_VAR)


def test_load_config_nothing_found(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)

    with pytest.raises(FileNotFoundError, match=r"Cannot locate release config"):
        load_config(env_var=ENV_VAR, start_dir=tmp_path)


def test_load_config_overlay_type_mismatch_raises(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    (tmp_path / "releaser.yaml").write_text("a:\n  b: 1\n", encoding="utf-8")
    (tmp_path / "releaser.local.yaml").write_text("a: [1, 2]\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"Invalid config overlay merge at a"):
        load_config(env_var=ENV_VAR, start_dir=tmp_path)


def test_load_config_invalid_overlay_yaml_raises(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    (tmp_path / "releaser.yaml").write_text("a: 1\n", encoding="utf-8")
    (tmp_path / "releaser.local.yaml").write_text("a: [1, 2\n", encoding="utf-8")

    with pytest.raises(ValueError) as excinfo:
        load_config(env_var=ENV_VAR, start_dir=tmp_path)

    assert "releaser.local.yaml" in str(excinfo.value)


def test_load_config_rejects_non_mapping(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    (tmp_path / "releaser.yaml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"must contain a YAML mapping"):
        load_config(env_var=ENV_VAR, start_dir=tmp_path)


def test_load_config_env_override_loads_single_file(tmp_path, monkeypatch):
    base_dir = tmp_path / "base"
    base_dir.mkdir()
    env_dir = tmp_path / "env"
    env_dir.mkdir()

    (base_dir / "releaser.yaml").write_text("a: 1\n", encoding="utf-8")
    (base_dir / "releaser.local.yaml").write_text("a: 2\n", encoding="utf-8")
    env_path = env_dir / "my_config.yaml"
    env_path.write_text("a: 999\n", encoding="utf-8")

    monkeypatch.setenv(ENV_VAR, str(env_path))
    cfg, meta = load_config(env_var=ENV_VAR, start_dir=base_dir)

    assert cfg == {"a": 999}
    assert meta["mode"] == "env"
    assert meta["paths"] == [os.path.abspath(str(env_path))]
