"""Configuration file handling — load appexport.yaml."""

import os

import yaml

from appexport.pacts.errors import ConfigError


def load_config(path: str) -> dict:
    """Load appexport.yaml or return the default config."""
    if os.path.exists(path):
        try:
            with open(path, encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read config {path}: {exc}") from exc
        if not isinstance(cfg, dict):
            raise ConfigError(f"config {path} must be a mapping")
    else:
        cfg = {}
    cfg.setdefault("scratch_dir", "./.appexport-work")
    cfg.setdefault("output_dir", ".")
    cfg.setdefault("format", "cpk")
    cfg.setdefault("pull_workers", 1)
    cfg.setdefault("formats", {})
    cfg.setdefault("extensions_dir", None)
    return cfg
