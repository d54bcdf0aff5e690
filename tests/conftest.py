"""
Shared pytest fixtures and configuration for RAG agent tests.

This module provides common setup and utilities for all tests in the suite:
a scripted chat model stand-in, fast test settings and an in-memory corpus
index built with deterministic fake embeddings (no network, no API keys).
"""

import inspect
import os
import sys
from pathlib import Path

import pytest

# Add src/ to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

# Disable LangSmith tracing for all tests to avoid 403 warnings
os.environ["LANGCHAIN_TRACING_V2"] = "false"
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ["MODEL_TIER"] = "budget"

from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.messages import AIMessage

from rag_agent_langgraph.core import AgentSettings
from rag_agent_langgraph.retrieval import build_index
from rag_agent_langgraph.tools import ToolRegistry, make_retriever_tool


def pytest_configure(config):
    """
    Pytest configuration hook - runs before test collection.

    Sets up test environment and registers custom markers.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "requires_llm: marks tests that require LLM API calls"
    )


# ========== SCRIPTED MODEL ==========

class ScriptedModel:
    """
    Chat model stand-in that replays a fixed script.

    Each step is an AIMessage (returned), an exception (raised) or a callable
    taking the prompt messages (sync or async) whose result is returned.
    """

    def __init__(self, *steps, model_name=None):
        self.steps = list(steps)
        self.model_name = model_name
        self.calls = []
        self.bound_tools = None
        self.tool_choice = None

    def bind_tools(self, tools, tool_choice=None, **kwargs):
        self.bound_tools = tools
        self.tool_choice = tool_choice
        return self

    async def ainvoke(self, messages, config=None, **kwargs):
        self.calls.append(list(messages))
        if not self.steps:
            raise AssertionError("ScriptedModel ran out of scripted responses")
        step = self.steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            step = step(messages)
            if inspect.isawaitable(step):
                step = await step
        return step


def tool_call_message(query: str, call_id: str = None, name: str = "retrieve_documents") -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": {"query": query}, "id": call_id}])


def score_response(score: str) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[{"name": "give_relevance_score", "args": {"binary_score": score}, "id": None}],
    )


CORPUS = [
    Document(
        page_content="Artificial intelligence is used in web search, recommendation systems and medical diagnosis.",
        metadata={"source": "https://example.org/ai", "id": "ai_chunk_0"},
    ),
    Document(
        page_content="Machine learning models learn patterns from data to make predictions.",
        metadata={"source": "https://example.org/ml", "id": "ml_chunk_0"},
    ),
    Document(
        page_content="Deep learning uses multi-layer neural networks for vision and speech.",
        metadata={"source": "https://example.org/dl", "id": "dl_chunk_0"},
    ),
]


@pytest.fixture
def fast_settings():
    """Settings with tiny retry intervals so retried failures do not slow the suite."""
    return AgentSettings(
        max_rewrites=3,
        model_timeout_seconds=5.0,
        retry_initial_interval=0.01,
        retry_backoff_factor=1.0,
        vector_store_backend="memory",
        corpus_urls=(),
    )


@pytest.fixture
def embeddings():
    return DeterministicFakeEmbedding(size=32)


@pytest.fixture
def corpus_index(embeddings):
    return build_index(CORPUS, embeddings, backend="memory")


@pytest.fixture
def empty_index(embeddings):
    return build_index([], embeddings, backend="memory")


@pytest.fixture
def registry(corpus_index):
    return ToolRegistry([make_retriever_tool(corpus_index, k=2)])


@pytest.fixture
def empty_registry(empty_index):
    return ToolRegistry([make_retriever_tool(empty_index, k=2)])
