"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables**: e.g., OPENROUTER_API_KEY=sk-or-...
#   2. **.env file**: key=value lines in the project root .env file
#
# Field ``openrouter_api_key`` maps to env var ``OPENROUTER_API_KEY``.
# Defaults apply when neither source sets a value.  An empty string means
# "not configured": provider selection in main.py skips those providers.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

_KNOWN_LLM_PROVIDERS = ("openrouter", "openai", "anthropic", "ollama", "flowise")


class Settings(BaseSettings):
    """PT2030 candidaturas service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM Providers ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, Azure proxy, ...)
    openai_text_model: str = ""
    openai_embedding_model: str = ""
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_default_model: str = "google/gemini-2.0-flash-exp"
    openrouter_referer: str = "https://candidaturas-pt2030.lovable.app"
    openrouter_app_title: str = "Candidaturas PT2030"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    ollama_base_url: str = ""  # e.g. http://localhost:11434; empty disables Ollama
    ollama_model: str = "llama3.1"
    flowise_url: str = ""
    flowise_api_key: str = ""
    flowise_chatflow_id: str = "flow"
    # Comma-separated fallback order for generation.
    llm_provider_priority: str = "openrouter,openai,anthropic,ollama,flowise"

    # === Embeddings ===
    # "auto" uses OpenAI when a key is set, otherwise the offline hash embedder.
    embedding_provider: str = "auto"
    embedding_dimension: int = 1536

    # === Storage ===
    database_path: str = "data/candidaturas.db"
    storage_dir: str = "data/uploads"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "pt2030_document_chunks"
    max_upload_mb: int = 20

    # === RAG ===
    rag_top_k: int = 8
    # None: use the embedding provider's own default (0.7 OpenAI, 0.2 hash).
    rag_similarity_threshold: float | None = None
    chunk_size: int = 500
    chunk_overlap: int = 100

    # === Generation ===
    generation_temperature: float = 0.7
    generation_max_tokens_cap: int = 4000
    default_char_limit: int = 2000

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "*"

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have the settings they need."""
        providers: list[str] = []
        if self.openrouter_api_key:
            providers.append("openrouter")
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.ollama_base_url:
            providers.append("ollama")
        if self.flowise_url:
            providers.append("flowise")
        return providers

    def get_provider_priority(self) -> list[str]:
        """Parse ``llm_provider_priority`` into a de-duplicated list of known names.

        Known providers missing from the setting are appended in default
        order so every configured provider can still act as a fallback.
        """
        ordered: list[str] = []
        for raw in self.llm_provider_priority.split(","):
            name = raw.strip().lower()
            if name in _KNOWN_LLM_PROVIDERS and name not in ordered:
                ordered.append(name)
        for name in _KNOWN_LLM_PROVIDERS:
            if name not in ordered:
                ordered.append(name)
        return ordered

    def get_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()] or ["*"]
