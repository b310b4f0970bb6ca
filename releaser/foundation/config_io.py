from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

import yaml

CONFIG_ENV_VAR = "RELEASER_CONFIG"
DEFAULT_CONFIG_NAMES = (".releaser.yaml", ".releaser.yml", "releaser.yaml", "releaser.yml")


def _load_yaml_mapping(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except FileNotFoundError:
        raise
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def _deep_merge(base: Any, overlay: Any, *, path: str) -> Any:
    if overlay is None:
        return None
    if base is None:
        return overlay

    if isinstance(base, Mapping):
        if not isinstance(overlay, Mapping):
            raise ValueError(
                f"Invalid config overlay merge at {path}: base is mapping but overlay is {type(overlay).__name__}"
            )
        merged: dict[str, Any] = dict(base)
        for key, overlay_value in overlay.items():
            next_path = f"{path}.{key}" if path else str(key)
            if key in base:
                merged[key] = _deep_merge(base[key], overlay_value, path=next_path)
            else:
                merged[key] = overlay_value
        return merged

    # Lists (publishers, env, ids) are replaced wholesale, never concatenated.
    if isinstance(base, (list, tuple)):
        if not isinstance(overlay, (list, tuple)):
            raise ValueError(
                f"Invalid config overlay merge at {path}: base is list but overlay is {type(overlay).__name__}"
            )
        return list(overlay)

    if isinstance(overlay, (Mapping, list, tuple)):
        raise ValueError(
            f"Invalid config overlay merge at {path}: base is {type(base).__name__} but overlay is {type(overlay).__name__}"
        )
    return overlay


def _local_overlay_path(config_path: str) -> str:
    root, ext = os.path.splitext(config_path)
    return f"{root}.local{ext or '.yaml'}"


def find_config(start_dir: str | os.PathLike[str] | None = None) -> str:
    directory = os.path.abspath(os.fspath(start_dir or os.getcwd()))
    for name in DEFAULT_CONFIG_NAMES:
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate):
            return candidate
    raise FileNotFoundError(
        f"Cannot locate release config: searched {directory} for {', '.join(DEFAULT_CONFIG_NAMES)}"
    )


def load_config(
    config_path: str | os.PathLike[str] | None = None,
    *,
    env_var: str | None = CONFIG_ENV_VAR,
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Load the release configuration mapping from YAML.

    Resolution order: explicit `config_path`, then the `env_var` override, then the
    first default config name found in `start_dir` (cwd by default). A sibling
    `<name>.local.yaml` overlay is deep-merged on top when present, except for the
    env-var mode which always loads exactly one file.

    Returns `(cfg, meta)` where `meta` records the mode and the files loaded.
    """

    explicit_path = None
    mode = "base"
    if config_path is not None:
        explicit_path = os.fspath(config_path).strip() or None
        mode = "explicit"
    elif env_var:
        raw_env = os.environ.get(str(env_var), "")
        explicit_path = raw_env.strip() or None
        if explicit_path:
            expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
            cfg = _load_yaml_mapping(expanded)
            return cfg, {"mode": "env", "paths": [expanded], "env_var": env_var}

    if explicit_path:
        base_path = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
        if not os.path.exists(base_path):
            raise FileNotFoundError(f"Missing config file: {base_path}")
    else:
        base_path = find_config(start_dir)

    cfg = _load_yaml_mapping(base_path)
    loaded_paths = [base_path]

    overlay_path = _local_overlay_path(base_path)
    if os.path.exists(overlay_path):
        overlay = _load_yaml_mapping(overlay_path)
        cfg = _deep_merge(cfg, overlay, path="")
        loaded_paths.append(overlay_path)
        mode = f"{mode}+local"

    return cfg, {"mode": mode, "paths": loaded_paths, "env_var": env_var}
