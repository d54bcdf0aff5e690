"""Pydantic request/response models for the RAG agent API."""

from pydantic import BaseModel, Field
from typing import Optional


class QueryRequest(BaseModel):
    """Request model for the query endpoint."""

    question: str = Field(..., min_length=1, description="The question to ask the agent")
    timeout_seconds: Optional[float] = Field(
        None, gt=0, description="Run timeout. Defaults to RUN_TIMEOUT_SECONDS if set."
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "question": "What are the main applications of artificial intelligence?",
                    "timeout_seconds": None,
                }
            ]
        }
    }


class QueryResponse(BaseModel):
    """Response model for a completed run."""

    answer: str = Field(..., description="The final answer")
    node_trace: list[str] = Field(..., description="Nodes executed, in order")
    rewrites: int = Field(..., ge=0, description="Number of query rewrites performed")
    loop_limit_reached: bool = Field(
        False, description="Whether the rewrite limit was hit before evidence was judged relevant"
    )
    sources: list[str] = Field(default_factory=list, description="Distinct sources of chunks graded relevant")
    processing_time_seconds: float = Field(..., ge=0, description="Wall-clock run time")


class FailureDetail(BaseModel):
    """Structured failure returned for failed or cancelled runs."""

    status: str = Field(..., description="failed or cancelled")
    stage: Optional[str] = Field(None, description="Node or component where the run failed")
    error_type: Optional[str] = Field(None, description="Exception class name")
    message: str = Field(..., description="Human-readable failure description")
    node_trace: list[str] = Field(default_factory=list, description="Nodes executed before the failure")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Health status: healthy or unhealthy")


class ReadyResponse(BaseModel):
    """Response model for readiness check endpoint."""

    status: str = Field(..., description="Readiness status: ready or not_ready")
    agent_initialized: bool = Field(..., description="Whether the corpus index and graph are built")
    message: Optional[str] = Field(None, description="Additional status message")


class ConfigResponse(BaseModel):
    """Response model for configuration endpoint."""

    model_tier: str = Field(..., description="Active model tier")
    vector_store_backend: str = Field(..., description="Vector store backend")
    max_rewrites: int = Field(..., ge=0, description="Rewrite loop bound")
    tools: list[str] = Field(default_factory=list, description="Registered tool names")
    version: str = Field(..., description="API version")
