"""Prompt template system with model-specific variant support (GPT-4o vs GPT-5)."""

from typing import Optional

from rag_agent_langgraph.core.model_config import get_model_for_task
from . import agent_decision, answer_generation, query_rewriting, relevance_grading

_PROMPT_MODULES = {
    "agent_decision": agent_decision,
    "relevance_grading": relevance_grading,
    "query_rewriting": query_rewriting,
    "answer_generation": answer_generation,
}


def get_prompt(task_name: str, model_name: Optional[str] = None, **kwargs) -> str:
    """
    Load prompt template with model-specific variant (BASE or GPT5).

    The variant follows `model_name` when the caller knows which model will
    read the prompt, otherwise the current tier's model for the task.
    """
    module = _PROMPT_MODULES.get(task_name)
    if module is None:
        raise ValueError(f"No prompt registered for task '{task_name}'")

    model_name = model_name or get_model_for_task(task_name).name
    template = module.GPT5_PROMPT if _is_gpt5_family(model_name) else module.BASE_PROMPT

    # Format with kwargs if provided
    return template.format(**kwargs) if kwargs else template


def chat_model_name(model) -> Optional[str]:
    """Model name of a chat model client (ChatOpenAI exposes `model_name`), if any."""
    name = getattr(model, "model_name", None)
    return name if isinstance(name, str) else None


def _is_gpt5_family(model_name: str) -> bool:
    """Detect if model is GPT-5 family (needs concise prompts, no scaffolding)."""
    model_lower = model_name.lower()
    return model_lower.startswith("gpt-5") or model_lower.startswith("gpt5")


__all__ = ["get_prompt", "chat_model_name"]
