"""
Corpus acquisition and chunking for the retriever tool.

Sources are fetched concurrently as one batch with a collect-what-succeeds
policy: an unreachable URL is logged and skipped, never fatal to the batch.
"""

import asyncio
import logging
from typing import Callable, Iterable, List, Optional

from langchain_community.document_loaders import WebBaseLoader
from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from rag_agent_langgraph.core.errors import FetchError

logger = logging.getLogger(__name__)

LoaderFactory = Callable[[str], object]


def _make_splitter(chunk_size: int, chunk_overlap: int) -> RecursiveCharacterTextSplitter:
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=["\n\n", "\n", ". ", " ", ""],
    )


def fetch_document(url: str, loader_factory: LoaderFactory = WebBaseLoader) -> Document:
    """Fetch one URL and extract its text as a single Document."""
    try:
        pages = loader_factory(url).load()
    except Exception as e:
        raise FetchError(url, e) from e

    text = "\n\n".join(page.page_content.strip() for page in pages if page.page_content.strip())
    if not text:
        raise FetchError(url, ValueError("no text extracted"))

    metadata = dict(pages[0].metadata) if pages else {}
    metadata["source"] = url
    return Document(page_content=text, metadata=metadata)


async def load_documents_from_urls(
    urls: Iterable[str],
    loader_factory: LoaderFactory = WebBaseLoader,
) -> List[Document]:
    """Fetch all URLs concurrently; return the documents that loaded, in URL order."""
    urls = list(urls)
    results = await asyncio.gather(
        *(asyncio.to_thread(fetch_document, url, loader_factory) for url in urls),
        return_exceptions=True,
    )

    documents = []
    for url, result in zip(urls, results):
        if isinstance(result, FetchError):
            logger.warning("Skipping corpus source: %s", result)
        elif isinstance(result, BaseException):
            raise result
        else:
            logger.info("Loaded %s (%d chars)", url, len(result.page_content))
            documents.append(result)

    if urls and not documents:
        logger.warning("All %d corpus sources failed to load", len(urls))
    return documents


def split_text(text: str, chunk_size: int = 500, chunk_overlap: int = 50) -> List[str]:
    """Pure, deterministic chunking of raw text."""
    return _make_splitter(chunk_size, chunk_overlap).split_text(text)


def split_documents(
    documents: List[Document],
    chunk_size: int = 500,
    chunk_overlap: int = 50,
    splitter: Optional[RecursiveCharacterTextSplitter] = None,
) -> List[Document]:
    """Chunk documents and tag each chunk with a stable id and its source."""
    splitter = splitter or _make_splitter(chunk_size, chunk_overlap)

    all_chunks = []
    for doc in documents:
        source = doc.metadata.get("source", "unknown")
        chunks = splitter.split_text(doc.page_content)
        for i, chunk_text in enumerate(chunks):
            all_chunks.append(Document(
                page_content=chunk_text,
                metadata={
                    "id": f"{source}_chunk_{i}",
                    "chunk_index": i,
                    "total_chunks": len(chunks),
                    "source": source,
                    "source_type": "web",
                },
            ))
    return all_chunks
