"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml: Static defaults checked into the repo
#                          (app metadata, model catalogue)
#   2. .env file: Local developer overrides (not committed)
#   3. Environment vars: Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# derived from Settings on top:
#   base      = {"generation": {"temperature": 0.7}}
#   overrides = {"generation": {"max_tokens_cap": 4000}}
#   result    = {"generation": {"temperature": 0.7, "max_tokens_cap": 4000}}
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path

import yaml

from src.config.settings import Settings

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "config.yaml"


def load_config(path: str | Path = DEFAULT_CONFIG_PATH, settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
              an empty base config.
        settings: Settings instance to take overrides from.  A fresh
                  ``Settings()`` is built when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
            "priority": settings.get_provider_priority(),
        },
        "rag": {
            "top_k": settings.rag_top_k,
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
        },
        "generation": {
            "temperature": settings.generation_temperature,
            "max_tokens_cap": settings.generation_max_tokens_cap,
            "default_char_limit": settings.default_char_limit,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    if settings.rag_similarity_threshold is not None:
        env_overrides["rag"]["similarity_threshold"] = settings.rag_similarity_threshold

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
