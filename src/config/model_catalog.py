"""Catalogue of selectable generation models and the provider serving each.

Entries come from the ``models`` list in ``config/config.yaml``.  The
generation service uses :meth:`ModelCatalog.provider_for` to route a
requested model id to the LLM provider that understands it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.utils.errors import ConfigurationError


class ModelEntry(BaseModel):
    """A model the user may pick for generation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Provider-specific model identifier.")
    label: str = Field(description="Human-readable label.")
    group: str = Field(default="", description="Grouping shown in model pickers.")
    provider: str = Field(description="Name of the LLM provider that serves this model.")


class ModelCatalog:
    """Lookup table of :class:`ModelEntry` objects keyed by model id."""

    def __init__(self, entries: list[ModelEntry]) -> None:
        self._entries = list(entries)
        self._by_id = {e.id: e for e in self._entries}

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> ModelCatalog:
        """Build the catalogue from a loaded config dict (``config["models"]``)."""
        raw = config.get("models") or []
        if not isinstance(raw, list):
            raise ConfigurationError(message="'models' must be a list of model entries")
        try:
            entries = [ModelEntry(**item) for item in raw]
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(message=f"Invalid model catalogue entry: {exc}") from exc
        return cls(entries)

    def list_models(self) -> list[ModelEntry]:
        return list(self._entries)

    def get(self, model_id: str) -> ModelEntry | None:
        return self._by_id.get(model_id)

    def provider_for(self, model_id: str | None) -> str | None:
        """Return the provider name for *model_id*.

        Unknown ids shaped like ``vendor/model`` are OpenRouter ids.  Any
        other unknown id (or ``None``) returns ``None`` and the caller picks
        the first available provider.
        """
        if not model_id:
            return None
        entry = self._by_id.get(model_id)
        if entry is not None:
            return entry.provider
        if "/" in model_id:
            return "openrouter"
        return None
