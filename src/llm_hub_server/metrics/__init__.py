"""Prometheus metrics exposition."""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, Info, generate_latest

from llm_hub_server import __version__

# Application info
APP_INFO = Info("llm_hub_server", "Application information")
APP_INFO.info({"version": __version__})

# Request counters
REQUESTS_TOTAL = Counter(
    "llm_hub_requests_total",
    "Chat completion requests by outcome",
    ["model", "mode", "outcome"],
)

STREAM_DISCONNECTS_TOTAL = Counter(
    "llm_hub_stream_disconnects_total",
    "Streams abandoned by the client before completion",
    ["model"],
)

# Approximate token counts (character heuristic)
PROMPT_TOKENS = Histogram(
    "llm_hub_prompt_tokens",
    "Approximate prompt tokens per request",
    ["model"],
    buckets=[16, 64, 256, 512, 1024, 2048, 4096, 8192],
)

COMPLETION_TOKENS = Histogram(
    "llm_hub_completion_tokens",
    "Approximate completion tokens per request",
    ["model"],
    buckets=[16, 64, 256, 512, 1024, 2048, 4096, 8192],
)

# Generation time
GENERATION_TIME = Histogram(
    "llm_hub_generation_time_seconds",
    "Time spent generating a response",
    ["model", "mode"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)


class MetricsExporter:
    """Exports metrics in Prometheus format."""

    @staticmethod
    def get_prometheus_format() -> tuple[str, bytes]:
        """Get metrics in Prometheus exposition format.

        Returns:
            Tuple of (content_type, metrics_body)
        """
        return CONTENT_TYPE_LATEST, generate_latest()

    @staticmethod
    def record_request(
        model: str,
        mode: str,
        outcome: str,
        duration: float | None = None,
    ) -> None:
        """Record a finished chat completion.

        Args:
            model: Serving model name
            mode: "stream" or "sync"
            outcome: "ok", "disconnected" or "error"
            duration: Generation time in seconds, if measured
        """
        REQUESTS_TOTAL.labels(model=model, mode=mode, outcome=outcome).inc()
        if duration is not None:
            GENERATION_TIME.labels(model=model, mode=mode).observe(duration)

    @staticmethod
    def record_tokens(model: str, prompt_tokens: int, completion_tokens: int) -> None:
        """Record approximate token counts."""
        PROMPT_TOKENS.labels(model=model).observe(prompt_tokens)
        COMPLETION_TOKENS.labels(model=model).observe(completion_tokens)

    @staticmethod
    def record_disconnect(model: str) -> None:
        """Record a stream the client abandoned."""
        STREAM_DISCONNECTS_TOTAL.labels(model=model).inc()
