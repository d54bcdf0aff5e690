import asyncio

import pytest
from langchain_core.documents import Document

from rag_agent_langgraph.core import AgentSettings, FetchError
from rag_agent_langgraph.retrieval import (
    build_index,
    fetch_document,
    load_documents_from_urls,
    setup_corpus_index,
    split_documents,
    split_text,
)


PAGES = {
    "https://example.org/ai": "Artificial intelligence overview. " * 40,
    "https://example.org/ml": "Machine learning overview. " * 40,
}


class FakeLoader:
    """Stands in for WebBaseLoader: serves PAGES, fails for anything else."""

    def __init__(self, url):
        self.url = url

    def load(self):
        if self.url not in PAGES:
            raise ConnectionError(f"cannot reach {self.url}")
        return [Document(page_content=PAGES[self.url], metadata={"title": "page"})]


class BlankLoader:
    def __init__(self, url):
        self.url = url

    def load(self):
        return [Document(page_content="   ")]


def test_fetch_document_sets_source():
    doc = fetch_document("https://example.org/ai", loader_factory=FakeLoader)
    assert doc.metadata["source"] == "https://example.org/ai"
    assert doc.metadata["title"] == "page"
    assert doc.page_content.startswith("Artificial intelligence")


def test_fetch_document_wraps_failures():
    with pytest.raises(FetchError) as excinfo:
        fetch_document("https://unreachable.invalid", loader_factory=FakeLoader)
    assert excinfo.value.url == "https://unreachable.invalid"
    assert excinfo.value.stage == "corpus"


def test_fetch_document_rejects_pages_without_text():
    with pytest.raises(FetchError):
        fetch_document("https://example.org/blank", loader_factory=BlankLoader)


def test_load_documents_collects_what_succeeds():
    urls = ["https://example.org/ml", "https://unreachable.invalid", "https://example.org/ai"]
    docs = asyncio.run(load_documents_from_urls(urls, loader_factory=FakeLoader))
    assert [d.metadata["source"] for d in docs] == ["https://example.org/ml", "https://example.org/ai"]


def test_load_documents_all_failing_returns_empty():
    docs = asyncio.run(load_documents_from_urls(["https://a.invalid", "https://b.invalid"], loader_factory=FakeLoader))
    assert docs == []


def test_split_text_is_deterministic_and_bounded():
    text = "word " * 500
    chunks = split_text(text, chunk_size=100, chunk_overlap=10)
    assert chunks == split_text(text, chunk_size=100, chunk_overlap=10)
    assert len(chunks) > 1
    assert all(len(c) <= 100 for c in chunks)


def test_split_documents_tags_chunks():
    docs = [Document(page_content=PAGES["https://example.org/ai"], metadata={"source": "https://example.org/ai"})]
    chunks = split_documents(docs, chunk_size=200, chunk_overlap=20)

    assert chunks[0].metadata["id"] == "https://example.org/ai_chunk_0"
    assert chunks[-1].metadata["chunk_index"] == len(chunks) - 1
    assert all(c.metadata["total_chunks"] == len(chunks) for c in chunks)
    assert all(c.metadata["source_type"] == "web" for c in chunks)


def test_index_query_returns_ranked_documents(embeddings):
    chunks = split_documents(
        [Document(page_content=text, metadata={"source": url}) for url, text in PAGES.items()],
        chunk_size=200,
        chunk_overlap=20,
    )
    index = build_index(chunks, embeddings, backend="memory")

    docs = asyncio.run(index.aquery("machine learning", k=3))

    assert len(docs) == 3
    assert {d.source for d in docs} <= set(PAGES)
    assert asyncio.run(index.aquery("machine learning", k=3)) == docs


def test_empty_index_returns_nothing(empty_index):
    assert empty_index.is_empty
    assert asyncio.run(empty_index.aquery("anything")) == []


def test_unknown_backend_is_rejected(embeddings):
    with pytest.raises(ValueError):
        build_index([Document(page_content="x")], embeddings, backend="azure")


def test_setup_corpus_index_skips_unreachable_sources(embeddings):
    settings = AgentSettings(
        corpus_urls=("https://example.org/ai", "https://unreachable.invalid"),
        chunk_size=200,
        chunk_overlap=20,
        vector_store_backend="memory",
    )
    index = asyncio.run(setup_corpus_index(settings, embeddings, loader_factory=FakeLoader))

    assert not index.is_empty
    assert {d.source for d in asyncio.run(index.aquery("intelligence", k=2))} == {"https://example.org/ai"}
