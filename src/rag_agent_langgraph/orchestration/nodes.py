import logging
import re
from typing import Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from rag_agent_langgraph.core import (
    AgentSettings,
    RAGAgentState,
    RoutingError,
    ainvoke_model,
    check_tool_correlation,
    emitted_tool_call_ids,
    evidence_texts,
    latest_ai_message,
    message_text,
    normalize_tool_calls,
    original_question,
    tool_messages,
)
from rag_agent_langgraph.orchestration.grading import RELEVANCE_TOOL_NAME, grading_score, is_grading_message
from rag_agent_langgraph.prompts import chat_model_name, get_prompt
from rag_agent_langgraph.prompts.answer_generation import (
    HIGH_CONFIDENCE_INSTRUCTION,
    INSUFFICIENT_EVIDENCE_ANSWER,
    LOW_CONFIDENCE_INSTRUCTION,
    NO_CONTEXT_PROMPT,
)
from rag_agent_langgraph.tools import ToolRegistry

logger = logging.getLogger(__name__)

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)
_WRAPPING_QUOTES = ('"', "'", "“", "”")


def clean_model_text(text: str) -> str:
    """Strip reasoning-model <think> blocks, surrounding whitespace and wrapping quotes."""
    text = _THINK_BLOCK.sub("", text).strip()
    if len(text) >= 2 and text[0] in _WRAPPING_QUOTES and text[-1] in _WRAPPING_QUOTES:
        text = text[1:-1].strip()
    return text


class AgentNodes:
    """
    Decision, retrieval, rewrite and answer nodes bound to their collaborators.

    Collaborators are read-only and shared across runs; all per-run data lives
    in the graph state.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        decision_model,
        rewrite_model,
        generation_model,
        settings: Optional[AgentSettings] = None,
    ):
        self.registry = registry
        self.settings = settings or AgentSettings()
        self.decision_model_name = chat_model_name(decision_model)
        self.rewrite_model_name = chat_model_name(rewrite_model)
        self.generation_model_name = chat_model_name(generation_model)
        self.decision_model = decision_model.bind_tools(registry.schemas()) if len(registry) else decision_model
        self.rewrite_model = rewrite_model
        self.generation_model = generation_model

    @property
    def model_timeout(self) -> float:
        return self.settings.model_timeout_seconds

    # ========== DECIDE ==========

    async def decide(self, state: RAGAgentState) -> dict:
        """Let the model either answer directly or request tool calls."""
        messages = state["messages"]
        history = [m for m in messages if not is_grading_message(m)]

        rewritten = state.get("scratch", {}).get("query")
        if rewritten:
            # Presented to the model only; the log keeps the original question.
            history.append(HumanMessage(content=f"Improved question: {rewritten}"))

        prompt = [SystemMessage(content=get_prompt("agent_decision", self.decision_model_name))] + history
        response = await ainvoke_model(self.decision_model, prompt, "decide", self.model_timeout)
        response = normalize_tool_calls(response, emitted_tool_call_ids(messages))

        if response.tool_calls:
            logger.info("DECIDE: %s", ", ".join(f"{c['name']}({c.get('args')})" for c in response.tool_calls))
        else:
            logger.info("DECIDE: answer without retrieval")
        return {"messages": [response]}

    # ========== RETRIEVE ==========

    async def retrieve(self, state: RAGAgentState) -> dict:
        """Dispatch every unanswered intent of the latest assistant turn, in order."""
        messages = state["messages"]
        latest = latest_ai_message(messages)
        if latest is None or not latest.tool_calls:
            raise RoutingError("retrieval reached without tool-call intents", stage="retrieve")

        answered = {m.tool_call_id for m in tool_messages(messages)}
        intents = [call for call in latest.tool_calls if call["id"] not in answered]

        # Reject unknown tools before any handler runs.
        for intent in intents:
            self.registry.get(intent["name"])

        results = []
        for intent in intents:
            result = await self.registry.dispatch(intent)
            logger.info("RETRIEVE: %s -> %s (%d chars)", intent["name"], result.status, len(str(result.content)))
            results.append(result)

        check_tool_correlation(messages + results, exempt_tools=frozenset({RELEVANCE_TOOL_NAME}))
        return {"messages": results}

    # ========== REWRITE ==========

    async def rewrite(self, state: RAGAgentState) -> dict:
        """Reformulate the original question; only scratch changes."""
        scratch = state.get("scratch", {})
        question = original_question(state)
        history = list(scratch.get("rewrite_history", []))

        prompt = get_prompt(
            "query_rewriting",
            self.rewrite_model_name,
            question=question,
            previous_rewrites="\n".join(f"- {q}" for q in history) or "(none)",
        )
        response = await ainvoke_model(self.rewrite_model, [HumanMessage(content=prompt)], "rewrite", self.model_timeout)
        rewritten = clean_model_text(message_text(response)) or question

        rewrites = scratch.get("rewrites", 0) + 1
        logger.info("REWRITE %d: %s", rewrites, rewritten)
        return {"scratch": {"query": rewritten, "rewrites": rewrites, "rewrite_history": history + [rewritten]}}

    # ========== ANSWER ==========

    async def answer(self, state: RAGAgentState) -> dict:
        """Produce the final answer from the best available context."""
        messages = state["messages"]
        question = original_question(state)

        last = messages[-1]
        loop_limit_reached = is_grading_message(last) and grading_score(last) != "yes"

        if not tool_messages(messages):
            answer = await self._answer_without_retrieval(state, question)
        else:
            evidence = evidence_texts(messages)
            if not evidence:
                logger.info("ANSWER: no usable evidence after retrieval")
                answer = INSUFFICIENT_EVIDENCE_ANSWER
            else:
                last_grade = next((m for m in reversed(messages) if is_grading_message(m)), None)
                judged_relevant = last_grade is not None and grading_score(last_grade) == "yes"
                instruction = HIGH_CONFIDENCE_INSTRUCTION if judged_relevant else LOW_CONFIDENCE_INSTRUCTION
                prompt = get_prompt(
                    "answer_generation",
                    self.generation_model_name,
                    quality_instruction=instruction,
                    question=question,
                    context="\n\n".join(evidence),
                )
                response = await ainvoke_model(
                    self.generation_model, [HumanMessage(content=prompt)], "answer_direct", self.model_timeout
                )
                answer = clean_model_text(message_text(response))

        if loop_limit_reached:
            logger.warning("ANSWER: rewrite limit reached, answering from best available context")
        return {
            "messages": [AIMessage(content=answer)],
            "scratch": {"final_answer": answer, "loop_limit_reached": loop_limit_reached},
        }

    async def _answer_without_retrieval(self, state: RAGAgentState, question: str) -> str:
        decision = latest_ai_message(state["messages"])
        direct = clean_model_text(message_text(decision)) if decision is not None else ""
        if direct:
            logger.info("ANSWER: promoting direct answer from decide")
            return direct

        prompt = NO_CONTEXT_PROMPT.format(question=question)
        response = await ainvoke_model(
            self.generation_model, [HumanMessage(content=prompt)], "answer_direct", self.model_timeout
        )
        return clean_model_text(message_text(response))
