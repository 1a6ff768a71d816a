"""Configuration module — exports Settings, load_config, and the static catalogues."""

from src.config.loader import load_config
from src.config.model_catalog import ModelCatalog, ModelEntry
from src.config.pt2030_sections import PT2030_SECTIONS, PT2030Section, get_section
from src.config.settings import Settings

__all__ = [
    "ModelCatalog",
    "ModelEntry",
    "PT2030Section",
    "PT2030_SECTIONS",
    "Settings",
    "get_section",
    "load_config",
]
