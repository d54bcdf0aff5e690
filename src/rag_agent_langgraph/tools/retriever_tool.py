from pydantic import BaseModel, Field

from rag_agent_langgraph.retrieval.index import CorpusIndex, RetrievedDocument
from rag_agent_langgraph.tools.registry import Tool

RETRIEVER_TOOL_NAME = "retrieve_documents"


class RetrieverInput(BaseModel):
    """Arguments for the document retriever tool."""
    query: str = Field(description="The query to search for in the documents")


def format_documents(docs: list[RetrievedDocument]) -> str:
    """Render retrieved chunks as tool-result text, one block per chunk."""
    return "\n\n".join(f"[{doc.source}] {doc.content}" for doc in docs)


def make_retriever_tool(index: CorpusIndex, k: int = 4) -> Tool:
    """Retriever tool over a prebuilt corpus index; returns text plus the documents as artifact."""

    async def search_documents(query: str) -> tuple[str, list[RetrievedDocument]]:
        docs = await index.aquery(query, k=k)
        return format_documents(docs), docs

    return Tool(
        name=RETRIEVER_TOOL_NAME,
        description="Search and return information from the document corpus.",
        parameters=RetrieverInput,
        handler=search_documents,
    )
