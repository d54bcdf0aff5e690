"""Core state, configuration, model selection and error taxonomy."""

from .state import (
    RAGAgentState,
    merge_scratch,
    initial_state,
    original_question,
    latest_ai_message,
    tool_messages,
    pending_tool_messages,
    is_usable_evidence,
    evidence_texts,
    message_text,
    new_tool_call_id,
    emitted_tool_call_ids,
    normalize_tool_calls,
    check_tool_correlation,
)
from .config import AgentSettings, DEFAULT_CORPUS_URLS
from .model_config import ModelSpec, ModelTier, get_model_for_task, build_chat_model, ainvoke_model
from .errors import (
    AgentError,
    ModelCallError,
    ModelRequestError,
    ToolDispatchError,
    RoutingError,
    UnknownToolError,
    CorrelationError,
    FetchError,
)

__all__ = [
    "RAGAgentState",
    "merge_scratch",
    "initial_state",
    "original_question",
    "latest_ai_message",
    "tool_messages",
    "pending_tool_messages",
    "is_usable_evidence",
    "evidence_texts",
    "message_text",
    "new_tool_call_id",
    "emitted_tool_call_ids",
    "normalize_tool_calls",
    "check_tool_correlation",
    "AgentSettings",
    "DEFAULT_CORPUS_URLS",
    "ModelSpec",
    "ModelTier",
    "get_model_for_task",
    "build_chat_model",
    "ainvoke_model",
    "AgentError",
    "ModelCallError",
    "ModelRequestError",
    "ToolDispatchError",
    "RoutingError",
    "UnknownToolError",
    "CorrelationError",
    "FetchError",
]
