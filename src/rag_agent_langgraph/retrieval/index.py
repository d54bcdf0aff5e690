from dataclasses import dataclass
from typing import Optional
import logging

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import InMemoryVectorStore, VectorStore
from langchain_community.vectorstores import FAISS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetrievedDocument:
    """A ranked chunk returned by the corpus index. Immutable."""
    content: str
    source: str
    chunk_id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Document) -> "RetrievedDocument":
        return cls(
            content=doc.page_content,
            source=doc.metadata.get("source", "unknown"),
            chunk_id=doc.metadata.get("id"),
        )


class CorpusIndex:
    """Similarity search over chunked corpus documents (read-only after construction)."""

    def __init__(self, vectorstore: Optional[VectorStore], chunk_count: int = 0):
        self.vectorstore = vectorstore
        self.chunk_count = chunk_count

    @property
    def is_empty(self) -> bool:
        return self.vectorstore is None or self.chunk_count == 0

    async def aquery(self, text: str, k: int = 4) -> list[RetrievedDocument]:
        if self.is_empty:
            return []
        docs = await self.vectorstore.asimilarity_search(text, k=k)
        return [RetrievedDocument.from_document(d) for d in docs]


def build_index(chunks: list[Document], embeddings: Embeddings, backend: str = "faiss") -> CorpusIndex:
    """Embed chunks into a vector store. No chunks yields an index that returns nothing."""
    if not chunks:
        logger.warning("Building corpus index with no chunks; retrieval will return no documents")
        return CorpusIndex(None, 0)

    if backend == "faiss":
        vectorstore = FAISS.from_documents(chunks, embeddings)
    elif backend == "memory":
        vectorstore = InMemoryVectorStore.from_documents(chunks, embeddings)
    else:
        raise ValueError(f"Unknown vector store backend '{backend}' (expected 'faiss' or 'memory')")

    logger.info("Indexed %d chunks with %s backend", len(chunks), backend)
    return CorpusIndex(vectorstore, len(chunks))
