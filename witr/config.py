from __future__ import annotations
from typing import Any, Dict
from pathlib import Path
import sys

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "high_cpu_seconds": 2 * 60 * 60,
    "high_mem_bytes": 1024 * 1024 * 1024,
    "long_running_days": 90,
    "suspicious_dirs": ["/", "/tmp", "/var/tmp", "/dev/shm"],
    "color": True,
    "api_host": "127.0.0.1",
    "api_port": 8080,
}

CONFIG_TYPES: Dict[str, Any] = {
    "high_cpu_seconds": (int, float),
    "high_mem_bytes": (int, float),
    "long_running_days": (int, float),
    "suspicious_dirs": list,
    "color": bool,
    "api_host": str,
    "api_port": int,
}


def check_value(key: str, value: Any) -> None:
    expected = CONFIG_TYPES[key]
    # bool is an int subclass; only "color" takes one
    if isinstance(value, bool) and expected is not bool:
        raise ValueError(f"{key} must not be a boolean")
    if not isinstance(value, expected):
        raise ValueError(f"{key} has the wrong type: {type(value).__name__}")
    if key == "suspicious_dirs" and not all(isinstance(d, str) for d in value):
        raise ValueError("suspicious_dirs must be a list of paths")


def load_config(path: str | None) -> Dict[str, Any]:
    cfg = DEFAULT_CONFIG.copy()
    if not path:
        return cfg
    try:
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError("top-level YAML value must be a mapping")
        unknown = sorted(str(k) for k in set(data) - set(DEFAULT_CONFIG))
        if unknown:
            print(f"Warning: ignoring unknown config keys: {', '.join(unknown)}", file=sys.stderr)
        known = {k: v for k, v in data.items() if k in DEFAULT_CONFIG}
        for key, value in known.items():
            check_value(key, value)
        cfg.update(known)
        print(f"Loaded config from {path}", file=sys.stderr)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Warning: Could not load config {path}: {e}", file=sys.stderr)
    return cfg
