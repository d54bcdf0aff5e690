import logging
from typing import Optional

from langchain_community.document_loaders import WebBaseLoader
from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings

from rag_agent_langgraph.core.config import AgentSettings
from rag_agent_langgraph.retrieval.documents import LoaderFactory, load_documents_from_urls, split_documents
from rag_agent_langgraph.retrieval.index import CorpusIndex, build_index

logger = logging.getLogger(__name__)


async def setup_corpus_index(
    settings: Optional[AgentSettings] = None,
    embeddings: Optional[Embeddings] = None,
    loader_factory: LoaderFactory = WebBaseLoader,
) -> CorpusIndex:
    """
    Fetch, chunk and index the configured corpus URLs.

    Unreachable sources are skipped; if none load, the index is empty and the
    retriever tool returns no documents.
    """
    settings = settings or AgentSettings()
    embeddings = embeddings or OpenAIEmbeddings(model=settings.embedding_model)

    logger.info("Loading %d corpus sources", len(settings.corpus_urls))
    documents = await load_documents_from_urls(settings.corpus_urls, loader_factory)
    chunks = split_documents(documents, settings.chunk_size, settings.chunk_overlap)
    logger.info("Split %d documents into %d chunks", len(documents), len(chunks))

    return build_index(chunks, embeddings, backend=settings.vector_store_backend)
