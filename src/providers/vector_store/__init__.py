"""Vector store provider implementations.

ChromaDB is the sole vector store.  One persistent collection holds the
chunks of every project; ``project_id`` and ``file_id`` metadata scope
queries and deletions.  Data lives under CHROMADB_PERSIST_DIR
(default: ./data/chromadb).
"""

from src.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
