"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from llm_hub_server import __version__
from llm_hub_server.catalog import ModelCatalog, create_catalog
from llm_hub_server.config import ConfigProvider, Settings, create_config_provider, get_settings
from llm_hub_server.core.engine import InferenceEngine, load_engine
from llm_hub_server.core.gateway import ChatCompletionService
from llm_hub_server.metrics import MetricsExporter
from llm_hub_server.openai_api import router as openai_router
from llm_hub_server.utils import configure_logging, get_logger

logger = get_logger(__name__)

BANNER = "LLM Hub Local Server is running!"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, settings.log_json)

    service: ChatCompletionService = app.state.service
    if service.engine is None:
        service.engine = load_engine(settings)

    config = service.config_provider.snapshot()
    logger.info(
        "startup",
        version=__version__,
        host=settings.host,
        port=config.port,
        api_type=config.api_type,
        selected_model=config.selected_model,
    )

    yield

    logger.info("shutdown")


def create_app(
    settings: Settings | None = None,
    engine: InferenceEngine | None = None,
    catalog: ModelCatalog | None = None,
    config_provider: ConfigProvider | None = None,
) -> FastAPI:
    """Build the gateway application.

    Collaborators default to the ones described by ``settings``; the engine
    is then loaded at startup.

    Args:
        settings: Application settings
        engine: Inference engine
        catalog: Model catalog
        config_provider: Source of configuration snapshots

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="LLM Hub Local Server",
        description="OpenAI-compatible API for on-device models",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = ChatCompletionService(
        engine=engine,
        catalog=catalog or create_catalog(settings),
        config_provider=config_provider or create_config_provider(settings),
    )

    # Clients usually live on another device of the same network.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_api_route("/", root, methods=["GET"], response_class=PlainTextResponse)
    app.add_api_route("/health", health_check, methods=["GET"])
    app.add_api_route("/metrics", metrics, methods=["GET"])
    app.include_router(openai_router)
    return app


async def root() -> PlainTextResponse:
    """Liveness probe."""
    return PlainTextResponse(BANNER)


async def health_check(request: Request) -> dict[str, str | bool]:
    """Health check endpoint."""
    service: ChatCompletionService = request.app.state.service
    return {
        "status": "healthy",
        "version": __version__,
        "engine": service.engine is not None,
    }


async def metrics() -> PlainTextResponse:
    """Prometheus metrics endpoint."""
    content_type, metrics_body = MetricsExporter.get_prometheus_format()
    return PlainTextResponse(content=metrics_body.decode("utf-8"), media_type=content_type)


app = create_app()


def main():
    """CLI entry point."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    config = create_config_provider(settings).snapshot()
    if not config.enabled:
        logger.info("server.disabled")
        return

    uvicorn.run(
        "llm_hub_server.main:app",
        host=settings.host,
        port=config.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
