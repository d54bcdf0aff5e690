"""
Relevance grading node.

The grader asks a model to score the freshly retrieved context against the
user's original question by forcing a call to the `give_relevance_score` tool.
That call is never executed; the router reads its `binary_score` argument.
"""

import hashlib
import logging
from typing import Literal, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from pydantic import BaseModel, Field

from rag_agent_langgraph.core import (
    RAGAgentState,
    RoutingError,
    ainvoke_model,
    emitted_tool_call_ids,
    is_usable_evidence,
    new_tool_call_id,
    normalize_tool_calls,
    original_question,
    pending_tool_messages,
)
from rag_agent_langgraph.prompts import chat_model_name, get_prompt
from rag_agent_langgraph.retrieval import RetrievedDocument

logger = logging.getLogger(__name__)

RELEVANCE_TOOL_NAME = "give_relevance_score"


class RelevanceScore(BaseModel):
    """Give a relevance score to the retrieved documents."""
    binary_score: Literal["yes", "no"] = Field(description="Relevance score 'yes' or 'no'")


RELEVANCE_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": RELEVANCE_TOOL_NAME,
        "description": RelevanceScore.__doc__,
        "parameters": RelevanceScore.model_json_schema(),
    },
}


def is_grading_message(message: BaseMessage) -> bool:
    """True for assistant turns produced by the grader (first intent is the scoring tool)."""
    return (
        isinstance(message, AIMessage)
        and bool(message.tool_calls)
        and message.tool_calls[0]["name"] == RELEVANCE_TOOL_NAME
    )


def grading_score(message: BaseMessage) -> Optional[str]:
    """The `binary_score` of a grading message, or None when it is malformed."""
    if not is_grading_message(message):
        return None
    score = (message.tool_calls[0].get("args") or {}).get("binary_score")
    return score if isinstance(score, str) else None


def parse_binary_score(message: BaseMessage) -> str:
    score = grading_score(message)
    if score is None:
        raise RoutingError(
            f"expected a '{RELEVANCE_TOOL_NAME}' call with a string binary_score, got {message!r}",
            stage="grade",
        )
    return score


def grading_cache_key(question: str, context: str) -> str:
    return hashlib.sha256(f"{question}\x00{context}".encode("utf-8")).hexdigest()


def score_message(score: str) -> AIMessage:
    """A well-formed grading turn carrying `score`, without a model call."""
    return AIMessage(
        content="",
        tool_calls=[{"name": RELEVANCE_TOOL_NAME, "args": {"binary_score": score}, "id": new_tool_call_id()}],
    )


def retrieved_documents(results: list[ToolMessage]) -> list[RetrievedDocument]:
    """Documents carried as artifacts by successful retriever results."""
    return [
        doc
        for message in results if is_usable_evidence(message)
        for doc in (message.artifact or []) if isinstance(doc, RetrievedDocument)
    ]


class RelevanceGrader:
    """
    Binary relevance grader over the tool results of the latest retrieval.

    Grades are cached in scratch by (question, context) digest, so grading an
    identical pair again within a run yields the identical label. Documents of
    a pass graded "yes" are kept in scratch as `filtered_docs`.
    """

    def __init__(self, model, timeout: Optional[float] = None):
        self.model_name = chat_model_name(model)
        self.model = model.bind_tools([RELEVANCE_TOOL_SCHEMA], tool_choice=RELEVANCE_TOOL_NAME)
        self.timeout = timeout

    async def grade(self, state: RAGAgentState) -> dict:
        messages = state["messages"]
        scratch = state.get("scratch", {})
        question = original_question(state)

        results = pending_tool_messages(messages, skip_tools=frozenset({RELEVANCE_TOOL_NAME}))
        evidence = [str(m.content) for m in results if is_usable_evidence(m)]
        if not evidence:
            logger.info("GRADE: no usable evidence, scoring 'no' without a model call")
            return {"messages": [score_message("no")]}

        context = "\n\n".join(evidence)
        key = grading_cache_key(question, context)
        cache = scratch.get("grade_cache", {})
        if key in cache:
            score = cache[key]
            logger.info("GRADE: cached score '%s'", score)
            update = {"messages": [score_message(score)], "scratch": {}}
        else:
            response = await self.score(question, context)
            response = normalize_tool_calls(response, emitted_tool_call_ids(messages))

            score = grading_score(response)
            logger.info("GRADE: score=%s", score)
            if score is None:
                # Malformed output is passed through; the router rejects it.
                return {"messages": [response]}
            update = {"messages": [response], "scratch": {"grade_cache": {**cache, key: score}}}

        if score == "yes":
            kept = list(scratch.get("filtered_docs", []))
            kept.extend(doc for doc in retrieved_documents(results) if doc not in kept)
            update["scratch"]["filtered_docs"] = kept
        return update

    async def score(self, question: str, context: str) -> AIMessage:
        prompt = get_prompt("relevance_grading", self.model_name, question=question, context=context)
        return await ainvoke_model(self.model, [HumanMessage(content=prompt)], "grade", self.timeout)
