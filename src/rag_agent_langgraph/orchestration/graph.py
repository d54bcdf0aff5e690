from functools import partial
from typing import Optional

from langgraph.graph import StateGraph, START, END
from langgraph.types import RetryPolicy

from rag_agent_langgraph.core import AgentSettings, ModelCallError, RAGAgentState
from rag_agent_langgraph.orchestration.grading import RelevanceGrader
from rag_agent_langgraph.orchestration.nodes import AgentNodes
from rag_agent_langgraph.orchestration.routing import (
    route_after_decision,
    route_after_grading,
    strict_router,
)

DECIDE = "decide"
RETRIEVE = "retrieve"
GRADE = "grade"
REWRITE = "rewrite"
ANSWER = "answer_direct"

DECISION_ROUTES = {
    "retrieve": RETRIEVE,
    "answer": ANSWER,
}

GRADING_ROUTES = {
    "relevant": ANSWER,
    "not_relevant": REWRITE,
    "loop_limit": ANSWER,
}


def model_retry_policy(settings: AgentSettings) -> RetryPolicy:
    """Exponential backoff for transient model failures only."""
    return RetryPolicy(
        initial_interval=settings.retry_initial_interval,
        backoff_factor=settings.retry_backoff_factor,
        max_attempts=settings.model_max_attempts,
        retry_on=ModelCallError,
    )


# ========== GRAPH BUILDER ==========

def build_rag_agent_graph(nodes: AgentNodes, grader: RelevanceGrader, settings: Optional[AgentSettings] = None):
    """
    Build the corrective RAG agent graph.

    decide -> (retrieve | answer_direct); retrieve -> grade;
    grade -> (answer_direct | rewrite | answer_direct); rewrite -> decide.
    Compiled without a checkpointer: state lives only for one run.
    """
    settings = settings or nodes.settings
    retry = model_retry_policy(settings)

    builder = StateGraph(RAGAgentState)

    builder.add_node(DECIDE, nodes.decide, retry_policy=retry)
    builder.add_node(RETRIEVE, nodes.retrieve)
    builder.add_node(GRADE, grader.grade, retry_policy=retry)
    builder.add_node(REWRITE, nodes.rewrite, retry_policy=retry)
    builder.add_node(ANSWER, nodes.answer, retry_policy=retry)

    builder.add_edge(START, DECIDE)

    builder.add_conditional_edges(
        DECIDE,
        strict_router(DECIDE, route_after_decision, DECISION_ROUTES),
        DECISION_ROUTES,
    )

    builder.add_edge(RETRIEVE, GRADE)

    builder.add_conditional_edges(
        GRADE,
        strict_router(GRADE, partial(route_after_grading, max_rewrites=settings.max_rewrites), GRADING_ROUTES),
        GRADING_ROUTES,
    )

    builder.add_edge(REWRITE, DECIDE)
    builder.add_edge(ANSWER, END)

    return builder.compile()
