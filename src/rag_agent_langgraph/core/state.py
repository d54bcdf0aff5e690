from typing_extensions import TypedDict, Annotated
from typing import Any, Optional
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
import operator
import uuid

from rag_agent_langgraph.core.errors import CorrelationError


def merge_scratch(left: Optional[dict[str, Any]], right: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Shallow union of scratch entries; keys from the newer update win."""
    return {**(left or {}), **(right or {})}


class RAGAgentState(TypedDict):
    """
    State schema for the tool-calling RAG agent.

    State Management Patterns:
    - operator.add: Message log is append-only (no dedupe, no replacement), so
      messages[0] is always the user's original question
    - merge_scratch: Transient routing data (rewritten query, loop counters,
      grading cache) that must not pollute the message log
    """

    messages: Annotated[list[BaseMessage], operator.add]
    scratch: Annotated[dict[str, Any], merge_scratch]


def initial_state(question: str) -> RAGAgentState:
    """Fresh run state seeded with the user's question."""
    return {
        "messages": [HumanMessage(content=question)],
        "scratch": {"rewrites": 0},
    }


def original_question(state: RAGAgentState) -> str:
    messages = state.get("messages", [])
    if not messages:
        raise CorrelationError("conversation has no messages; the original question is missing")
    return messages[0].content


def latest_ai_message(messages: list[BaseMessage]) -> Optional[AIMessage]:
    for message in reversed(messages):
        if isinstance(message, AIMessage):
            return message
    return None


def tool_messages(messages: list[BaseMessage]) -> list[ToolMessage]:
    """All tool results in retrieval order."""
    return [m for m in messages if isinstance(m, ToolMessage)]


def pending_tool_messages(
    messages: list[BaseMessage],
    skip_tools: frozenset[str] = frozenset(),
) -> list[ToolMessage]:
    """
    Tool results produced after the most recent intent-bearing assistant turn.

    Assistant turns whose intents all name tools in `skip_tools` (e.g. the
    never-executed relevance scoring tool) are looked past.
    """
    pending: list[ToolMessage] = []
    for message in reversed(messages):
        if isinstance(message, ToolMessage):
            pending.append(message)
        elif isinstance(message, AIMessage) and message.tool_calls:
            if all(call["name"] in skip_tools for call in message.tool_calls):
                continue
            break
    return list(reversed(pending))


def is_usable_evidence(message: ToolMessage) -> bool:
    return message.status != "error" and bool(str(message.content).strip())


def evidence_texts(messages: list[BaseMessage]) -> list[str]:
    """Content of successful, non-empty tool results, oldest first."""
    return [str(m.content) for m in messages if isinstance(m, ToolMessage) and is_usable_evidence(m)]


def message_text(message: BaseMessage) -> str:
    """Plain text of a message whose content may be a list of content blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


# ========== TOOL-CALL CORRELATION ==========

def new_tool_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


def emitted_tool_call_ids(messages: list[BaseMessage]) -> set[str]:
    return {
        call["id"]
        for m in messages if isinstance(m, AIMessage)
        for call in m.tool_calls if call.get("id")
    }


def normalize_tool_calls(message: AIMessage, seen_ids: set[str]) -> AIMessage:
    """Give every intent an id that is unique within the run (models may omit or reuse ids)."""
    if not message.tool_calls:
        return message

    used = set(seen_ids)
    calls = []
    changed = False
    for call in message.tool_calls:
        call_id = call.get("id")
        if not call_id or call_id in used:
            call_id = new_tool_call_id()
            changed = True
        used.add(call_id)
        calls.append({**call, "id": call_id})

    if not changed:
        return message
    return message.model_copy(update={"tool_calls": calls})


def check_tool_correlation(messages: list[BaseMessage], exempt_tools: frozenset[str] = frozenset()) -> None:
    """
    Verify the intent/result bijection over a message log.

    Every tool message must answer exactly one intent emitted earlier, and no
    intent may be answered twice. Intents for tools in `exempt_tools` (e.g. the
    relevance scoring tool, which is never executed) need no result. Intents
    still awaiting a result are only allowed on the most recent assistant turn.
    """
    emitted: dict[str, str] = {}
    answered: set[str] = set()
    last_intent_turn: Optional[int] = None

    for index, message in enumerate(messages):
        if isinstance(message, AIMessage) and message.tool_calls:
            for call in message.tool_calls:
                call_id = call.get("id")
                if not call_id:
                    raise CorrelationError(f"tool call '{call.get('name')}' has no id")
                if call_id in emitted:
                    raise CorrelationError(f"tool call id '{call_id}' emitted more than once")
                emitted[call_id] = call["name"]
            last_intent_turn = index
        elif isinstance(message, ToolMessage):
            if message.tool_call_id not in emitted:
                raise CorrelationError(f"tool message answers unknown intent '{message.tool_call_id}'")
            if message.tool_call_id in answered:
                raise CorrelationError(f"intent '{message.tool_call_id}' answered more than once")
            answered.add(message.tool_call_id)

    open_ids = {
        call_id for call_id, name in emitted.items()
        if call_id not in answered and name not in exempt_tools
    }
    if not open_ids:
        return

    last_turn_ids = {call["id"] for call in messages[last_intent_turn].tool_calls} if last_intent_turn is not None else set()
    stale = open_ids - last_turn_ids
    if stale:
        raise CorrelationError(f"intents left without a tool result: {', '.join(sorted(stale))}")
