from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from quotedesk.api.deps import get_orchestrator
from quotedesk.config.settings import settings
from quotedesk.handler import handle_quote_request
from quotedesk.orchestrator import BatchFetchOrchestrator
from quotedesk.schemas.quote import QuoteRequest

router = APIRouter()

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


def _to_response(body: dict) -> JSONResponse:
    status_code = (
        status.HTTP_200_OK if body.get("success") else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(content=body, status_code=status_code, headers=_CORS_HEADERS)


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/quotes")
async def get_quotes_endpoint(
    symbols: str | None = None,
    orchestrator: BatchFetchOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    event = {"symbols": symbols} if symbols is not None else {}
    body = await handle_quote_request(
        event,
        orchestrator,
        settings.default_symbols,
        expose_failures=settings.expose_failures,
    )
    return _to_response(body)


@router.post("/quotes")
async def post_quotes_endpoint(
    payload: QuoteRequest,
    orchestrator: BatchFetchOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    event = payload.model_dump(exclude_none=True)
    body = await handle_quote_request(
        event,
        orchestrator,
        settings.default_symbols,
        expose_failures=settings.expose_failures,
    )
    return _to_response(body)
