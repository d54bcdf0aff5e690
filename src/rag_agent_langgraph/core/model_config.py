"""Model tier configuration for LLM selection across agent tasks."""

from enum import Enum
from dataclasses import dataclass
from typing import Optional
import asyncio
import os
import logging

import openai
from langchain_core.messages import AIMessage, BaseMessage
from langchain_openai import ChatOpenAI

from rag_agent_langgraph.core.errors import ModelCallError, ModelRequestError

logger = logging.getLogger(__name__)

# Failures worth retrying: transport errors, timeouts, rate limits and 5xx.
TRANSIENT_MODEL_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
)


class ModelTier(str, Enum):
    """Available model tier configurations."""
    BUDGET = "budget"
    BALANCED = "balanced"
    PREMIUM = "premium"
    LOCAL = "local"


@dataclass
class ModelSpec:
    """LLM model configuration for one agent task."""
    name: str
    temperature: float
    reasoning_effort: Optional[str] = None


@dataclass
class TierConfig:
    """Complete tier configuration mapping agent tasks to model specs."""
    agent_decision: ModelSpec
    relevance_grading: ModelSpec
    query_rewriting: ModelSpec
    answer_generation: ModelSpec


# ========== BUDGET TIER: ALL GPT-4o-mini ==========

BUDGET_TIER = TierConfig(
    agent_decision=ModelSpec(name="gpt-4o-mini", temperature=0),
    relevance_grading=ModelSpec(name="gpt-4o-mini", temperature=0),  # Binary decision must be deterministic
    query_rewriting=ModelSpec(name="gpt-4o-mini", temperature=0),
    answer_generation=ModelSpec(name="gpt-4o-mini", temperature=0),
)


# ========== BALANCED TIER: GPT-4o-mini routing, GPT-5-mini generation ==========

BALANCED_TIER = TierConfig(
    agent_decision=ModelSpec(name="gpt-4o-mini", temperature=0),
    relevance_grading=ModelSpec(name="gpt-4o-mini", temperature=0),
    query_rewriting=ModelSpec(name="gpt-4o-mini", temperature=0),
    answer_generation=ModelSpec(name="gpt-5-mini", temperature=0, reasoning_effort="low"),
)


# ========== PREMIUM TIER: GPT-5.1 + GPT-5-mini ==========

PREMIUM_TIER = TierConfig(
    agent_decision=ModelSpec(name="gpt-5-mini", temperature=0, reasoning_effort="low"),
    relevance_grading=ModelSpec(name="gpt-5-mini", temperature=0, reasoning_effort="minimal"),
    query_rewriting=ModelSpec(name="gpt-5-mini", temperature=0, reasoning_effort="low"),
    answer_generation=ModelSpec(name="gpt-5.1", temperature=0, reasoning_effort="low"),
)


# ========== LOCAL TIER: Ollama via its OpenAI-compatible endpoint ==========
# Small tool-calling model for decisions and grading, reasoning model for text.
# Set OPENAI_BASE_URL=http://localhost:11434/v1 and any non-empty OPENAI_API_KEY.

LOCAL_TIER = TierConfig(
    agent_decision=ModelSpec(name="llama3.2:3b", temperature=0),
    relevance_grading=ModelSpec(name="llama3.2:3b", temperature=0),
    query_rewriting=ModelSpec(name="deepseek-r1:8b", temperature=0),
    answer_generation=ModelSpec(name="deepseek-r1:8b", temperature=0),
)


# ========== TIER REGISTRY ==========

TIER_CONFIGS = {
    ModelTier.BUDGET: BUDGET_TIER,
    ModelTier.BALANCED: BALANCED_TIER,
    ModelTier.PREMIUM: PREMIUM_TIER,
    ModelTier.LOCAL: LOCAL_TIER,
}


# ========== PUBLIC API ==========

def get_current_tier() -> ModelTier:
    """Get active tier from MODEL_TIER env var (defaults to BUDGET)."""
    tier_str = os.getenv("MODEL_TIER", "budget").lower()
    try:
        return ModelTier(tier_str)
    except ValueError:
        logger.warning("Invalid MODEL_TIER '%s', defaulting to 'budget'", tier_str)
        return ModelTier.BUDGET


def get_model_for_task(task_name: str) -> ModelSpec:
    """Get model specification for a task in the current tier."""
    tier = get_current_tier()
    config = TIER_CONFIGS[tier]

    try:
        return getattr(config, task_name)
    except AttributeError:
        raise AttributeError(
            f"Invalid task name '{task_name}'. Valid tasks: "
            f"{', '.join(config.__dataclass_fields__)}"
        )


def build_chat_model(task_name: str, timeout: float = 60.0, base_url: Optional[str] = None) -> ChatOpenAI:
    """Chat model client for a task. Retries are owned by the graph, not the client."""
    spec = get_model_for_task(task_name)
    model_kwargs = {}
    if spec.reasoning_effort:
        model_kwargs["reasoning_effort"] = spec.reasoning_effort
    return ChatOpenAI(
        model=spec.name,
        temperature=spec.temperature,
        timeout=timeout,
        max_retries=0,
        base_url=base_url,
        **model_kwargs,
    )


async def ainvoke_model(model, messages: list[BaseMessage], stage: str, timeout: Optional[float] = None) -> AIMessage:
    """
    The single LLM boundary used by every node.

    Bounds the call with `timeout` and converts transient failures to
    ModelCallError so the graph's retry policy can back off and try again.
    Other provider status errors (401, 400, 404...) become ModelRequestError,
    which is not retried.
    """
    try:
        response = await asyncio.wait_for(model.ainvoke(messages), timeout=timeout)
    except TRANSIENT_MODEL_ERRORS as e:
        logger.warning("Model call failed in %s: %s", stage, e)
        raise ModelCallError(stage, e) from e
    except openai.APIStatusError as e:
        logger.error("Model request rejected in %s: %s", stage, e)
        raise ModelRequestError(stage, e) from e

    if not isinstance(response, AIMessage):
        raise ModelCallError(stage, TypeError(f"expected AIMessage, got {type(response).__name__}"))
    return response
