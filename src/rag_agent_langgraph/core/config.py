import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LANGSMITH_API_KEY = os.getenv("LANGSMITH_API_KEY")

if LANGSMITH_API_KEY and os.getenv("LANGSMITH_TRACING", "false").lower() == "true":
    os.environ["LANGCHAIN_TRACING_V2"] = "true"
    os.environ["LANGSMITH_PROJECT"] = "rag-agent-langgraph"

DEFAULT_CORPUS_URLS = (
    "https://en.wikipedia.org/wiki/Artificial_intelligence",
    "https://en.wikipedia.org/wiki/Machine_learning",
    "https://en.wikipedia.org/wiki/Deep_learning",
)


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


def _env_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass
class AgentSettings:
    """Run-builder settings for the RAG agent (env-overridable via from_env)."""

    # Control loop
    max_rewrites: int = 3
    run_timeout_seconds: Optional[float] = None

    # Model calls
    model_timeout_seconds: float = 60.0
    model_max_attempts: int = 3
    retry_initial_interval: float = 0.5
    retry_backoff_factor: float = 2.0
    openai_base_url: Optional[str] = None

    # Corpus and retrieval
    corpus_urls: tuple[str, ...] = field(default_factory=lambda: DEFAULT_CORPUS_URLS)
    chunk_size: int = 500
    chunk_overlap: int = 50
    retrieval_k: int = 4
    vector_store_backend: str = "faiss"
    embedding_model: str = "text-embedding-3-small"

    # Tools
    include_calculator_tool: bool = False

    def __post_init__(self):
        if self.max_rewrites < 0:
            raise ValueError(f"max_rewrites must be >= 0, got {self.max_rewrites}")
        if self.model_max_attempts < 1:
            raise ValueError(f"model_max_attempts must be >= 1, got {self.model_max_attempts}")
        if self.vector_store_backend not in ("faiss", "memory"):
            raise ValueError(
                f"vector_store_backend must be 'faiss' or 'memory', got '{self.vector_store_backend}'"
            )

    @property
    def recursion_limit(self) -> int:
        """Superstep budget: each rewrite cycle is 4 nodes, plus the final pass and answer."""
        return 4 * (self.max_rewrites + 1) + 2

    @classmethod
    def from_env(cls) -> "AgentSettings":
        urls = os.getenv("CORPUS_URLS")
        return cls(
            max_rewrites=int(os.getenv("MAX_REWRITES", "3")),
            run_timeout_seconds=_env_optional_float("RUN_TIMEOUT_SECONDS"),
            model_timeout_seconds=float(os.getenv("MODEL_TIMEOUT_SECONDS", "60")),
            model_max_attempts=int(os.getenv("MODEL_MAX_ATTEMPTS", "3")),
            retry_initial_interval=float(os.getenv("RETRY_INITIAL_INTERVAL", "0.5")),
            retry_backoff_factor=float(os.getenv("RETRY_BACKOFF_FACTOR", "2.0")),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            corpus_urls=tuple(u.strip() for u in urls.split(",") if u.strip()) if urls else DEFAULT_CORPUS_URLS,
            chunk_size=int(os.getenv("CHUNK_SIZE", "500")),
            chunk_overlap=int(os.getenv("CHUNK_OVERLAP", "50")),
            retrieval_k=int(os.getenv("RETRIEVAL_K", "4")),
            vector_store_backend=os.getenv("VECTOR_STORE_BACKEND", "faiss").lower(),
            embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            include_calculator_tool=_env_bool("INCLUDE_CALCULATOR_TOOL", False),
        )
