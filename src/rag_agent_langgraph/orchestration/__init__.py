"""Graph topology, node implementations, routing and the run driver"""

from .graph import (
    build_rag_agent_graph,
    DECIDE,
    RETRIEVE,
    GRADE,
    REWRITE,
    ANSWER,
    DECISION_ROUTES,
    GRADING_ROUTES,
)
from .grading import RelevanceGrader, RelevanceScore, RELEVANCE_TOOL_NAME, is_grading_message, parse_binary_score
from .nodes import AgentNodes, clean_model_text
from .routing import route_after_decision, route_after_grading, strict_router, DECISION_LABELS, GRADING_LABELS
from .runner import RAGAgent, RunResult, RunFailure, build_rag_agent

__all__ = [
    "build_rag_agent_graph",
    "DECIDE",
    "RETRIEVE",
    "GRADE",
    "REWRITE",
    "ANSWER",
    "DECISION_ROUTES",
    "GRADING_ROUTES",
    "RelevanceGrader",
    "RelevanceScore",
    "RELEVANCE_TOOL_NAME",
    "is_grading_message",
    "parse_binary_score",
    "AgentNodes",
    "clean_model_text",
    "route_after_decision",
    "route_after_grading",
    "strict_router",
    "DECISION_LABELS",
    "GRADING_LABELS",
    "RAGAgent",
    "RunResult",
    "RunFailure",
    "build_rag_agent",
]
