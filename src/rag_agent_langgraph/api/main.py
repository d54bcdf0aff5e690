"""FastAPI application for the corrective RAG agent."""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from rag_agent_langgraph.api.schemas import (
    QueryRequest,
    QueryResponse,
    FailureDetail,
    HealthResponse,
    ReadyResponse,
    ConfigResponse,
)
from rag_agent_langgraph.core.model_config import get_current_tier
from rag_agent_langgraph.orchestration import RAGAgent, RunResult, build_rag_agent

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

AgentFactory = Callable[[], Awaitable[RAGAgent]]

DESCRIPTION = """
Question answering over a web document corpus with a self-correcting LangGraph agent.

## Flow

1. **decide** - the model answers directly or calls the retrieval tool
2. **retrieve** - tool calls are executed and their results appended
3. **grade** - binary relevance of the retrieved context to the question
4. **rewrite** - on "no", the question is reformulated and the agent retries
5. **answer_direct** - final grounded answer (bounded by MAX_REWRITES)

## Demo Corpus

Wikipedia pages on Artificial Intelligence, Machine Learning and Deep Learning
(override with CORPUS_URLS).
"""


def _failure_detail(result: RunResult) -> dict:
    if result.failure is not None:
        detail = FailureDetail(
            status=result.status,
            stage=result.failure.stage,
            error_type=result.failure.error_type,
            message=result.failure.message,
            node_trace=result.node_trace,
        )
    else:
        detail = FailureDetail(
            status=result.status,
            message="Run was cancelled or timed out before an answer was produced",
            node_trace=result.node_trace,
        )
    return detail.model_dump()


def create_app(agent_factory: Optional[AgentFactory] = None) -> FastAPI:
    """Build the API app. The agent is created once at startup by `agent_factory`."""
    agent_factory = agent_factory or build_rag_agent

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Initializing RAG agent...")
        app.state.agent = None
        try:
            app.state.agent = await agent_factory()
            logger.info("RAG agent initialized successfully")
        except Exception as e:
            logger.warning("Failed to initialize agent on startup: %s", e)
            logger.warning("Agent will be initialized on first request")

        yield

        logger.info("Shutting down...")

    app = FastAPI(
        title="Corrective RAG Agent API",
        description=DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def get_agent(request: Request) -> RAGAgent:
        agent = getattr(request.app.state, "agent", None)
        if agent is None:
            try:
                agent = await agent_factory()
            except Exception as e:
                raise HTTPException(status_code=503, detail=f"Failed to initialize agent: {e}")
            request.app.state.agent = agent
        return agent

    @app.get("/v1/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Liveness probe - checks if the service is running."""
        return HealthResponse(status="healthy")

    @app.get("/v1/ready", response_model=ReadyResponse, tags=["Health"])
    async def readiness_check(request: Request):
        """Readiness probe - the corpus index and graph are built."""
        if getattr(request.app.state, "agent", None) is not None:
            return ReadyResponse(
                status="ready",
                agent_initialized=True,
                message="Service is ready to accept requests",
            )
        return ReadyResponse(
            status="not_ready",
            agent_initialized=False,
            message="Agent not yet initialized",
        )

    @app.get("/v1/config", response_model=ConfigResponse, tags=["Configuration"])
    async def get_config(request: Request):
        """Active model tier, vector store backend, loop bound and tools."""
        agent = await get_agent(request)
        return ConfigResponse(
            model_tier=get_current_tier().value.upper(),
            vector_store_backend=agent.settings.vector_store_backend,
            max_rewrites=agent.settings.max_rewrites,
            tools=agent.registry.names if agent.registry is not None else [],
            version=API_VERSION,
        )

    @app.post("/v1/query", response_model=QueryResponse, tags=["RAG"])
    async def query_agent(body: QueryRequest, request: Request):
        """
        Answer a question with the agent.

        Returns 200 with the answer, node trace, rewrite count and sources;
        502 with the structured failure when the run fails; 504 when it is
        cancelled or times out.
        """
        agent = await get_agent(request)
        result = await agent.arun(body.question, timeout=body.timeout_seconds)

        if result.status == "failed":
            raise HTTPException(status_code=502, detail=_failure_detail(result))
        if result.status == "cancelled":
            raise HTTPException(status_code=504, detail=_failure_detail(result))

        return QueryResponse(
            answer=result.answer or "",
            node_trace=result.node_trace,
            rewrites=result.rewrites,
            loop_limit_reached=result.loop_limit_reached,
            sources=result.sources,
            processing_time_seconds=round(result.elapsed_seconds, 2),
        )

    @app.get("/", include_in_schema=False)
    async def root():
        """Redirect root to API documentation."""
        return RedirectResponse(url="/docs")

    return app


app = create_app()
