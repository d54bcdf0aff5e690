"""Pure routing predicates for the agent graph."""

import logging
from typing import Callable, Literal, Mapping

from langchain_core.messages import AIMessage

from rag_agent_langgraph.core import RAGAgentState, RoutingError
from rag_agent_langgraph.orchestration.grading import parse_binary_score

logger = logging.getLogger(__name__)

DECISION_LABELS = ("retrieve", "answer")
GRADING_LABELS = ("relevant", "not_relevant", "loop_limit")


# ========== DECISION ROUTING ==========

def route_after_decision(state: RAGAgentState) -> Literal["retrieve", "answer"]:
    """Retrieve when the decision turn carries tool-call intents, otherwise answer."""
    messages = state["messages"]
    latest = messages[-1] if messages else None
    if not isinstance(latest, AIMessage):
        raise RoutingError(
            f"decision router expected an assistant message, got {type(latest).__name__}",
            stage="decide",
        )

    label = "retrieve" if latest.tool_calls else "answer"
    logger.info("ROUTE after decide: %s", label)
    return label


# ========== GRADING ROUTING ==========

def route_after_grading(
    state: RAGAgentState,
    max_rewrites: int = 3,
) -> Literal["relevant", "not_relevant", "loop_limit"]:
    """
    Fail-closed routing on the grader's binary score.

    Only an exact "yes" counts as relevant. Anything else triggers another
    rewrite until `max_rewrites` is spent, then a best-effort answer.
    """
    messages = state["messages"]
    if not messages:
        raise RoutingError("grading router reached with an empty conversation", stage="grade")

    score = parse_binary_score(messages[-1])
    rewrites = state.get("scratch", {}).get("rewrites", 0)

    if score == "yes":
        label = "relevant"
    elif rewrites >= max_rewrites:
        label = "loop_limit"
    else:
        label = "not_relevant"

    logger.info("ROUTE after grade: score=%s rewrites=%d/%d -> %s", score, rewrites, max_rewrites, label)
    return label


# ========== STRICT WRAPPER ==========

def strict_router(source: str, predicate: Callable[[RAGAgentState], str], path_map: Mapping[str, str]):
    """Wrap a predicate so any label without an outgoing edge raises RoutingError."""

    def route(state: RAGAgentState) -> str:
        label = predicate(state)
        if label not in path_map:
            raise RoutingError(
                f"router for '{source}' returned unmapped label '{label}' (mapped: {', '.join(path_map)})",
                stage=source,
            )
        return label

    route.__name__ = f"route_after_{source}"
    return route
