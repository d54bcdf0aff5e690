"""Corpus loading, chunking and similarity search"""

from .documents import fetch_document, load_documents_from_urls, split_text, split_documents
from .index import CorpusIndex, RetrievedDocument, build_index
from .corpus import setup_corpus_index

__all__ = [
    "fetch_document",
    "load_documents_from_urls",
    "split_text",
    "split_documents",
    "CorpusIndex",
    "RetrievedDocument",
    "build_index",
    "setup_corpus_index",
]
