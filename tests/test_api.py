import asyncio

from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from rag_agent_langgraph.api.main import create_app
from rag_agent_langgraph.core import AgentSettings
from rag_agent_langgraph.orchestration import RAGAgent

from conftest import ScriptedModel, score_response, tool_call_message


def agent_factory(registry, decision, grading=(), generation=()):
    async def factory():
        return RAGAgent.from_components(
            registry,
            decision_model=ScriptedModel(*decision),
            grading_model=ScriptedModel(*grading),
            rewrite_model=ScriptedModel(),
            generation_model=ScriptedModel(*generation),
            settings=AgentSettings(max_rewrites=2, retry_initial_interval=0.01, vector_store_backend="memory"),
        )
    return factory


def test_health_and_ready(registry):
    with TestClient(create_app(agent_factory(registry, []))) as client:
        assert client.get("/v1/health").json() == {"status": "healthy"}
        ready = client.get("/v1/ready").json()
        assert ready["status"] == "ready"
        assert ready["agent_initialized"] is True


def test_config_reports_settings_and_tools(registry):
    with TestClient(create_app(agent_factory(registry, []))) as client:
        config = client.get("/v1/config").json()

    assert config["max_rewrites"] == 2
    assert config["vector_store_backend"] == "memory"
    assert config["tools"] == ["retrieve_documents"]
    assert config["model_tier"] == "BUDGET"


def test_query_returns_answer_trace_and_sources(registry):
    factory = agent_factory(
        registry,
        decision=[tool_call_message("AI applications")],
        grading=[score_response("yes")],
        generation=[AIMessage(content="Search and diagnosis.")],
    )
    with TestClient(create_app(factory)) as client:
        response = client.post("/v1/query", json={"question": "What is AI used for?"})

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "Search and diagnosis."
    assert body["node_trace"] == ["decide", "retrieve", "grade", "answer_direct"]
    assert body["rewrites"] == 0
    assert body["loop_limit_reached"] is False
    assert len(body["sources"]) == 2


def test_failed_run_maps_to_502(registry):
    factory = agent_factory(registry, decision=[tool_call_message("x", name="web_search")])
    with TestClient(create_app(factory)) as client:
        response = client.post("/v1/query", json={"question": "What is AI used for?"})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["status"] == "failed"
    assert detail["stage"] == "retrieve"
    assert detail["error_type"] == "UnknownToolError"


def test_timed_out_run_maps_to_504(registry):
    async def slow(messages):
        await asyncio.sleep(5)
        return AIMessage(content="late")

    factory = agent_factory(registry, decision=[slow])
    with TestClient(create_app(factory)) as client:
        response = client.post("/v1/query", json={"question": "hello", "timeout_seconds": 0.1})

    assert response.status_code == 504
    assert response.json()["detail"]["status"] == "cancelled"


def test_empty_question_is_rejected(registry):
    with TestClient(create_app(agent_factory(registry, []))) as client:
        assert client.post("/v1/query", json={"question": ""}).status_code == 422


def test_agent_build_failure_reports_not_ready():
    async def failing_factory():
        raise RuntimeError("embeddings unavailable")

    with TestClient(create_app(failing_factory)) as client:
        assert client.get("/v1/ready").json()["status"] == "not_ready"
        response = client.post("/v1/query", json={"question": "hello"})

    assert response.status_code == 503
    assert "embeddings unavailable" in response.json()["detail"]
