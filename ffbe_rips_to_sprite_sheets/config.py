import json
import os
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import MissingResource

DEFAULT_CONFIG: Dict[str, Any] = {
    "columns": 0,
    "divider": 0,
    "include_empty": False,
    "skip_invalid_frames": False,
    "canvas_size": 2000,
    "margin": 5,
    "workers": None,
    "output": {
        "json": False,
        "gif": False,
        "gif_alpha_threshold": 128,
    },
}


@dataclass(frozen=True)
class RipConfig:
    columns: int = 0
    divider: int = 0
    include_empty: bool = False
    skip_invalid_frames: bool = False
    canvas_size: int = 2000
    margin: int = 5
    workers: Optional[int] = None
    save_json: bool = False
    save_gif: bool = False
    gif_alpha_threshold: int = 128


def deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: pathlib.Path) -> Dict[str, Any]:
    if not path.exists():
        raise MissingResource(f"Config file {path} does not exist.")
    if path.stat().st_size == 0:
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            overrides = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {path} must contain a JSON object.")
    return overrides


def default_workers() -> int:
    return os.cpu_count() or 1


def _non_negative(config_json: Dict[str, Any], key: str) -> int:
    value = int(config_json.get(key) or 0)
    if value < 0:
        raise ValueError(f"{key} must be zero or greater.")
    return value


def build_config(overrides: Optional[Dict[str, Any]] = None) -> RipConfig:
    config_json = json.loads(json.dumps(DEFAULT_CONFIG))
    if overrides:
        config_json = deep_merge(config_json, overrides)

    canvas_size = int(config_json.get("canvas_size"))
    if canvas_size <= 0:
        raise ValueError("canvas_size must be greater than zero.")

    workers = config_json.get("workers")
    if workers is None:
        workers = default_workers()
    else:
        workers = int(workers)
        if workers <= 0:
            raise ValueError("workers must be greater than zero.")

    output_json = config_json.get("output")
    if not isinstance(output_json, dict):
        output_json = {}

    threshold = int(output_json.get("gif_alpha_threshold", 128))
    if not 0 <= threshold <= 255:
        raise ValueError("gif_alpha_threshold must be between 0 and 255.")

    return RipConfig(
        columns=_non_negative(config_json, "columns"),
        divider=_non_negative(config_json, "divider"),
        include_empty=bool(config_json.get("include_empty")),
        skip_invalid_frames=bool(config_json.get("skip_invalid_frames")),
        canvas_size=canvas_size,
        margin=_non_negative(config_json, "margin"),
        workers=workers,
        save_json=bool(output_json.get("json")),
        save_gif=bool(output_json.get("gif")),
        gif_alpha_threshold=threshold,
    )
