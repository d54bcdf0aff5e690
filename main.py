import asyncio
import logging

from rag_agent_langgraph.core import AgentSettings
from rag_agent_langgraph.orchestration import RunResult, build_rag_agent


def print_step(node_name: str, update: dict):
    scratch = update.get("scratch", {})
    if node_name == "rewrite":
        print(f"  [{node_name}] -> {scratch.get('query')}")
    else:
        print(f"  [{node_name}]")


async def run_rag_agent(question: str, settings: AgentSettings = None) -> RunResult:
    """Build the agent from the environment and answer one question."""
    settings = settings or AgentSettings.from_env()

    print(f"\n{'='*70}")
    print(f"CORRECTIVE RAG AGENT")
    print(f"{'='*70}")
    print(f"Corpus: {len(settings.corpus_urls)} sources, max rewrites: {settings.max_rewrites}")

    agent = await build_rag_agent(settings)

    print(f"Question: {question}\n")
    result = await agent.arun(question, on_step=print_step)

    print(f"\n{'='*70}")
    print("FINAL RESULT")
    print(f"{'='*70}\n")
    if result.completed:
        print(result.answer)
    elif result.failure is not None:
        print(f"Run failed in {result.failure.stage}: {result.failure.message}")
    else:
        print("Run was cancelled before an answer was produced")

    print(f"\n{'='*70}")
    print("SUMMARY")
    print(f"{'='*70}")
    print(f"Status: {result.status.upper()}")
    print(f"Nodes: {' -> '.join(result.node_trace)}")
    print(f"Rewrites: {result.rewrites}")
    print(f"Loop Limit Reached: {'Yes' if result.loop_limit_reached else 'No'}")
    print(f"Sources: {', '.join(result.sources) or 'none'}")
    print(f"Elapsed: {result.elapsed_seconds:.1f}s")

    return result

# Demo
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    test_questions = [
        "What are the main applications of artificial intelligence?",
#        "Hello! How are you today?",
    ]

    for question in test_questions:
        asyncio.run(run_rag_agent(question))
        print("\n" + "="*70 + "\n")
