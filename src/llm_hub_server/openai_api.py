"""OpenAI-compatible API endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from llm_hub_server.config import ServerConfig
from llm_hub_server.core.gateway import ChatCompletionService
from llm_hub_server.exceptions import GatewayError, InvalidRequestError
from llm_hub_server.models import ChatCompletionRequest, ModelCard, ModelList
from llm_hub_server.utils import get_logger

logger = get_logger(__name__)


def get_service(request: Request) -> ChatCompletionService:
    """Get the completion service bound to the application."""
    return request.app.state.service


def require_openai_api(request: Request) -> ServerConfig:
    """Only serve /v1 while the OpenAI API type is selected."""
    config = get_service(request).config_provider.snapshot()
    if not config.openai_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return config


router = APIRouter(prefix="/v1", tags=["openai"], dependencies=[Depends(require_openai_api)])


@router.get("/models")
async def list_models(request: Request) -> JSONResponse:
    """List chat-capable catalog models."""
    service = get_service(request)
    models = await run_in_threadpool(service.catalog.all_models)
    listing = ModelList(
        data=[ModelCard(id=m.name, owned_by=m.source) for m in models if m.serves_chat]
    )
    return JSONResponse(content=listing.model_dump(mode="json"))


@router.post("/chat/completions", response_model=None)
async def chat_completions(request: Request) -> JSONResponse | StreamingResponse:
    """Chat completions endpoint."""
    service = get_service(request)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        route=request.url.path,
        client=request.client.host if request.client else None,
    )

    try:
        chat_request = await _parse_chat_request(request)

        logger.info(
            "chat.request",
            model=chat_request.model,
            messages=len(chat_request.messages),
            stream=chat_request.stream,
            tools=len(chat_request.tools) if chat_request.tools else 0,
        )

        prepared = await service.prepare(chat_request)

        if chat_request.stream:
            return StreamingResponse(
                service.stream(prepared, is_disconnected=request.is_disconnected),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache"},
            )

        response = await service.complete(prepared)
        return JSONResponse(content=response.model_dump(mode="json"))

    except GatewayError as e:
        log = logger.warning if e.status_code < 500 else logger.error
        log("chat.rejected", status=e.status_code, error=e.message)
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    except Exception as e:
        logger.error("request.failed", error=str(e), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"message": str(e), "type": type(e).__name__, "code": 500}},
        )


async def _parse_chat_request(request: Request) -> ChatCompletionRequest:
    try:
        body = await request.json()
    except ValueError as e:
        raise InvalidRequestError(f"Malformed JSON body: {e}") from e

    try:
        return ChatCompletionRequest.model_validate(body)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidRequestError(f"Invalid request: {details}") from e
