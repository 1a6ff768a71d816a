"""Offline feature-hashing embedding provider.

Maps text to a fixed-size vector without any model download or API key:
every lower-cased word token and every character trigram is hashed into
one of ``dimension`` signed buckets, and the result is L2-normalised.
Texts that share vocabulary score higher than unrelated ones.  Scores run
lower than dense neural embeddings, so the provider reports its own
retrieval threshold (see :meth:`default_similarity_threshold`).

Vectors are deterministic across processes (``hashlib`` rather than the
salted built-in ``hash``), so a persisted ChromaDB collection stays valid
after a restart.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata

import numpy as np
import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)

# Word tokens carry more signal than trigrams.
_WORD_WEIGHT = 1.0
_TRIGRAM_WEIGHT = 0.5

# Sparse hashed features score lower than dense neural embeddings: a
# document passage about a section's topic lands around 0.25-0.5 against
# the section query, while unrelated text stays near 0.1.
_DEFAULT_SIMILARITY_THRESHOLD = 0.2


def _fold(text: str) -> str:
    """Lower-case and strip accents so 'inovação' and 'inovacao' match."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


class HashEmbeddingProvider(IEmbeddingProvider):
    """Deterministic bag-of-features embedder backed by numpy."""

    def __init__(self, dimension: int = 1536) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self._dimension = dimension

    def _bucket(self, feature: str) -> tuple[int, float]:
        digest = hashlib.blake2b(feature.encode("utf-8"), digest_size=8).digest()
        value = int.from_bytes(digest, "little")
        sign = 1.0 if value & 1 else -1.0
        return (value >> 1) % self._dimension, sign

    def _vectorize(self, text: str) -> list[float]:
        vector = np.zeros(self._dimension, dtype=np.float64)
        for token in _TOKEN_RE.findall(_fold(text)):
            index, sign = self._bucket("w:" + token)
            vector[index] += sign * _WORD_WEIGHT
            padded = f"#{token}#"
            for i in range(len(padded) - 2):
                index, sign = self._bucket("c:" + padded[i : i + 3])
                vector[index] += sign * _TRIGRAM_WEIGHT

        norm = np.linalg.norm(vector)
        if norm == 0.0:
            return vector.tolist()
        return (vector / norm).tolist()

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        vectors = [self._vectorize(text) for text in texts]
        logger.debug("hash_embedding_batch", batch_size=len(texts), dimension=self._dimension)
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        return self._vectorize(text)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "hash_embedding"

    def is_available(self) -> bool:
        return True

    def default_similarity_threshold(self) -> float:
        return _DEFAULT_SIMILARITY_THRESHOLD
