import asyncio

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from rag_agent_langgraph.core import merge_scratch
from rag_agent_langgraph.orchestration import RELEVANCE_TOOL_NAME, RelevanceGrader, parse_binary_score
from rag_agent_langgraph.retrieval import RetrievedDocument

from conftest import ScriptedModel, score_response


def _retrieved_state(*results):
    intents = [
        {"name": "retrieve_documents", "args": {"query": "q"}, "id": f"call_{i}"}
        for i in range(len(results))
    ]
    tools = [
        ToolMessage(content=content, tool_call_id=f"call_{i}", status=status)
        for i, (content, status) in enumerate(results)
    ]
    return {
        "messages": [HumanMessage(content="What is AI used for?"), AIMessage(content="", tool_calls=intents), *tools],
        "scratch": {"rewrites": 0},
    }


def _apply(state, update):
    return {
        "messages": state["messages"] + update.get("messages", []),
        "scratch": merge_scratch(state["scratch"], update.get("scratch")),
    }


def test_grader_forces_the_scoring_tool():
    model = ScriptedModel()
    RelevanceGrader(model)
    assert model.tool_choice == RELEVANCE_TOOL_NAME
    assert model.bound_tools[0]["function"]["name"] == RELEVANCE_TOOL_NAME


def test_grader_scores_no_without_model_when_evidence_is_empty():
    model = ScriptedModel()
    grader = RelevanceGrader(model)
    state = _retrieved_state(("", "success"), ("Error: boom", "error"))

    update = asyncio.run(grader.grade(state))

    assert model.calls == []
    assert parse_binary_score(update["messages"][0]) == "no"
    assert update["messages"][0].tool_calls[0]["id"].startswith("call_")


def test_grader_prompt_contains_question_and_context():
    model = ScriptedModel(score_response("yes"))
    grader = RelevanceGrader(model)

    asyncio.run(grader.grade(_retrieved_state(("AI powers web search.", "success"))))

    prompt = model.calls[0][0].content
    assert "What is AI used for?" in prompt
    assert "AI powers web search." in prompt


def test_regrading_identical_pair_yields_identical_label():
    model = ScriptedModel(score_response("yes"), score_response("no"))
    grader = RelevanceGrader(model)
    state = _retrieved_state(("AI powers web search.", "success"))

    first = asyncio.run(grader.grade(state))
    second = asyncio.run(grader.grade(_apply(state, first)))

    assert parse_binary_score(first["messages"][0]) == "yes"
    assert parse_binary_score(second["messages"][0]) == "yes"
    assert len(model.calls) == 1


def test_grader_ids_do_not_collide_with_earlier_intents():
    model = ScriptedModel(AIMessage(
        content="",
        tool_calls=[{"name": RELEVANCE_TOOL_NAME, "args": {"binary_score": "no"}, "id": "call_0"}],
    ))
    grader = RelevanceGrader(model)

    update = asyncio.run(grader.grade(_retrieved_state(("some text", "success"))))

    assert update["messages"][0].tool_calls[0]["id"] != "call_0"


def test_malformed_grade_is_passed_through_uncached():
    model = ScriptedModel(AIMessage(content="yes"))
    grader = RelevanceGrader(model)

    update = asyncio.run(grader.grade(_retrieved_state(("some text", "success"))))

    assert update["messages"][0].content == "yes"
    assert "scratch" not in update


def _with_artifacts(state, *docs):
    messages = list(state["messages"])
    messages[-1] = messages[-1].model_copy(update={"artifact": list(docs)})
    return {**state, "messages": messages}


AI_DOC = RetrievedDocument(content="AI powers web search.", source="https://example.org/ai")


def test_relevant_grade_keeps_retrieved_documents():
    grader = RelevanceGrader(ScriptedModel(score_response("yes")))
    state = _with_artifacts(_retrieved_state(("AI powers web search.", "success")), AI_DOC)

    update = asyncio.run(grader.grade(state))

    assert update["scratch"]["filtered_docs"] == [AI_DOC]


def test_irrelevant_grade_keeps_nothing():
    grader = RelevanceGrader(ScriptedModel(score_response("no")))
    state = _with_artifacts(_retrieved_state(("AI powers web search.", "success")), AI_DOC)

    update = asyncio.run(grader.grade(state))

    assert "filtered_docs" not in update["scratch"]


def test_cached_relevant_grade_does_not_duplicate_documents():
    grader = RelevanceGrader(ScriptedModel(score_response("yes")))
    state = _with_artifacts(_retrieved_state(("AI powers web search.", "success")), AI_DOC)

    first = _apply(state, asyncio.run(grader.grade(state)))
    second = asyncio.run(grader.grade(first))

    assert second["scratch"]["filtered_docs"] == [AI_DOC]


def test_grader_prompt_variant_follows_model_name():
    model = ScriptedModel(score_response("yes"), model_name="gpt-5-mini")
    grader = RelevanceGrader(model)

    asyncio.run(grader.grade(_retrieved_state(("AI powers web search.", "success"))))

    assert model.calls[0][0].content.startswith("Question: What is AI used for?")
