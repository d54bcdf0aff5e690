"""Error taxonomy for the RAG agent run.

Transient failures (ModelCallError) are retried by the graph's retry policy.
Requests the provider rejects outright (ModelRequestError) fail the run at once.
Tool handler failures (ToolDispatchError) are rendered into the conversation.
Anything that breaks the state-machine contract (RoutingError and subclasses)
aborts the run and is reported to the caller with the failing stage.
"""

from typing import Optional


class AgentError(Exception):
    """Base class for errors raised while driving a RAG agent run."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class ModelCallError(AgentError):
    """Model invocation failed (network, timeout, provider error). Retryable."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage}: model call failed ({type(cause).__name__}: {cause})", stage=stage)
        self.cause = cause


class ModelRequestError(AgentError):
    """Provider rejected the request (auth, bad request, missing model). Not retried."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage}: model request rejected ({type(cause).__name__}: {cause})", stage=stage)
        self.cause = cause


class ToolDispatchError(AgentError):
    """Tool handler raised. Never propagated out of the retrieval node."""

    def __init__(self, tool_name: str, cause: BaseException):
        super().__init__(f"tool '{tool_name}' failed ({type(cause).__name__}: {cause})", stage="retrieve")
        self.tool_name = tool_name
        self.cause = cause


class RoutingError(AgentError):
    """Unmapped routing label or malformed structured decision. Fatal."""


class UnknownToolError(RoutingError):
    """Model requested a tool that is not registered."""

    def __init__(self, tool_name: str, known: list[str]):
        super().__init__(
            f"model requested unknown tool '{tool_name}' (registered: {', '.join(known) or 'none'})",
            stage="retrieve",
        )
        self.tool_name = tool_name


class CorrelationError(RoutingError):
    """Tool-call intents and tool results no longer form a bijection."""


class FetchError(AgentError):
    """A corpus source could not be fetched or parsed."""

    def __init__(self, url: str, cause: BaseException):
        super().__init__(f"failed to fetch {url} ({type(cause).__name__}: {cause})", stage="corpus")
        self.url = url
        self.cause = cause
