"""
Run driver for the RAG agent graph.

Streams one run node by node, enforces the run timeout and external cancel
signal, and folds the outcome into a RunResult instead of raising.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from langchain_community.document_loaders import WebBaseLoader
from langchain_core.embeddings import Embeddings
from langchain_core.messages import BaseMessage
from langgraph.errors import GraphRecursionError

from rag_agent_langgraph.core import AgentError, AgentSettings, build_chat_model, initial_state
from rag_agent_langgraph.orchestration.graph import build_rag_agent_graph
from rag_agent_langgraph.orchestration.grading import RelevanceGrader
from rag_agent_langgraph.orchestration.nodes import AgentNodes
from rag_agent_langgraph.retrieval import RetrievedDocument, setup_corpus_index
from rag_agent_langgraph.retrieval.documents import LoaderFactory
from rag_agent_langgraph.tools import ToolRegistry, make_calculator_tool, make_retriever_tool

logger = logging.getLogger(__name__)

StepCallback = Callable[[str, dict], None]


@dataclass
class RunFailure:
    stage: str
    error_type: str
    message: str


@dataclass
class RunResult:
    """Outcome of one agent run: completed, failed or cancelled."""
    status: str
    question: str
    answer: Optional[str] = None
    messages: list[BaseMessage] = field(default_factory=list)
    scratch: dict[str, Any] = field(default_factory=dict)
    node_trace: list[str] = field(default_factory=list)
    rewrites: int = 0
    loop_limit_reached: bool = False
    sources: list[str] = field(default_factory=list)
    failure: Optional[RunFailure] = None
    elapsed_seconds: float = 0.0

    @property
    def completed(self) -> bool:
        return self.status == "completed"


def collect_sources(scratch: dict[str, Any]) -> list[str]:
    """Distinct sources of the documents graded relevant, in retrieval order."""
    sources: list[str] = []
    for doc in scratch.get("filtered_docs", []):
        if isinstance(doc, RetrievedDocument) and doc.source not in sources:
            sources.append(doc.source)
    return sources


class RAGAgent:
    """
    A compiled agent graph plus the settings it was built with.

    Safe to share across concurrent runs: every run gets its own state and
    only read-only collaborators are shared.
    """

    def __init__(self, graph, settings: AgentSettings, registry: Optional[ToolRegistry] = None):
        self.graph = graph
        self.settings = settings
        self.registry = registry

    @classmethod
    def from_components(
        cls,
        registry: ToolRegistry,
        decision_model,
        grading_model,
        rewrite_model,
        generation_model,
        settings: Optional[AgentSettings] = None,
    ) -> "RAGAgent":
        settings = settings or AgentSettings()
        nodes = AgentNodes(registry, decision_model, rewrite_model, generation_model, settings)
        grader = RelevanceGrader(grading_model, timeout=settings.model_timeout_seconds)
        return cls(build_rag_agent_graph(nodes, grader, settings), settings, registry)

    async def arun(
        self,
        question: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
        on_step: Optional[StepCallback] = None,
    ) -> RunResult:
        """Run the agent on one question. Failures are reported in the result, not raised."""
        timeout = timeout if timeout is not None else self.settings.run_timeout_seconds
        started = time.perf_counter()
        trace: list[str] = []
        latest: dict = dict(initial_state(question))

        async def drive():
            nonlocal latest
            async for mode, chunk in self.graph.astream(
                initial_state(question),
                config={"recursion_limit": self.settings.recursion_limit},
                stream_mode=["updates", "values"],
            ):
                if mode == "values":
                    latest = chunk
                    continue
                for node_name, update in chunk.items():
                    trace.append(node_name)
                    if on_step is not None:
                        on_step(node_name, update or {})

        def result(status: str, failure: Optional[RunFailure] = None) -> RunResult:
            messages = list(latest.get("messages", []))
            scratch = dict(latest.get("scratch", {}))
            return RunResult(
                status=status,
                question=question,
                answer=scratch.get("final_answer") if status == "completed" else None,
                messages=messages,
                scratch=scratch,
                node_trace=list(trace),
                rewrites=scratch.get("rewrites", 0),
                loop_limit_reached=bool(scratch.get("loop_limit_reached", False)),
                sources=collect_sources(scratch),
                failure=failure,
                elapsed_seconds=time.perf_counter() - started,
            )

        run_task = asyncio.create_task(drive())
        waiters = {run_task}
        cancel_task = None
        if cancel_event is not None:
            cancel_task = asyncio.create_task(cancel_event.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            run_task.cancel()
            raise
        finally:
            if cancel_task is not None:
                cancel_task.cancel()

        if run_task not in done:
            run_task.cancel()
            await asyncio.gather(run_task, return_exceptions=True)
            reason = "cancel signal" if cancel_event is not None and cancel_event.is_set() else "timeout"
            logger.warning("Run cancelled by %s after nodes: %s", reason, " -> ".join(trace) or "(none)")
            return result("cancelled")

        try:
            run_task.result()
        except AgentError as e:
            logger.error("Run failed in %s: %s", e.stage, e)
            return result("failed", RunFailure(e.stage or "unknown", type(e).__name__, str(e)))
        except GraphRecursionError as e:
            logger.error("Run exceeded recursion limit %d: %s", self.settings.recursion_limit, e)
            return result("failed", RunFailure("graph", type(e).__name__, str(e)))
        except Exception as e:
            stage = trace[-1] if trace else "graph"
            logger.exception("Run failed unexpectedly after %s", stage)
            return result("failed", RunFailure(stage, type(e).__name__, str(e)))

        logger.info("Run completed: %s (rewrites=%d)", " -> ".join(trace), latest.get("scratch", {}).get("rewrites", 0))
        return result("completed")

    def run(self, question: str, timeout: Optional[float] = None) -> RunResult:
        """Synchronous wrapper around `arun`."""
        return asyncio.run(self.arun(question, timeout=timeout))


# ========== FACTORY ==========

async def build_rag_agent(
    settings: Optional[AgentSettings] = None,
    embeddings: Optional[Embeddings] = None,
    loader_factory: LoaderFactory = WebBaseLoader,
) -> RAGAgent:
    """Load and index the corpus, register tools and wire the per-task chat models."""
    settings = settings or AgentSettings.from_env()
    index = await setup_corpus_index(settings, embeddings, loader_factory)

    tools = [make_retriever_tool(index, k=settings.retrieval_k)]
    if settings.include_calculator_tool:
        tools.append(make_calculator_tool())
    registry = ToolRegistry(tools)
    logger.info("Registered tools: %s", ", ".join(registry.names))

    def model(task: str):
        return build_chat_model(task, timeout=settings.model_timeout_seconds, base_url=settings.openai_base_url)

    return RAGAgent.from_components(
        registry,
        decision_model=model("agent_decision"),
        grading_model=model("relevance_grading"),
        rewrite_model=model("query_rewriting"),
        generation_model=model("answer_generation"),
        settings=settings,
    )
