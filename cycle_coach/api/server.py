"""FastAPI app exposing the chat relay.

``POST /cycle-chat`` takes ``{messages, currentPhase?, journalContext?, userId?}``
and streams the upstream ``text/event-stream`` body back unchanged. Failures
are returned as ``{"error": ...}`` with 429 (rate limit), 402 (quota), 400
(bad body) or 500. The ``/conversations`` routes back the conversation list.
"""

import logging
from typing import Any, Dict
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from cycle_coach.api import service
from cycle_coach.config.settings import settings
from cycle_coach.domain.exceptions import BusinessError, ValidationError
from cycle_coach.domain.models import RelayRequest
from cycle_coach.infrastructure.logging.logger import log_event

CORS_HEADERS = {
    "Access-Control-Allow-Origin": settings.cors_allow_origin,
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

app = FastAPI(title="cycle-coach")


def error_response(err: BusinessError) -> JSONResponse:
    return JSONResponse({"error": err.message}, status_code=err.http_status, headers=CORS_HEADERS)


@app.exception_handler(BusinessError)
async def business_error_handler(request: Request, exc: BusinessError) -> JSONResponse:
    return error_response(exc)


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise ValidationError(code="INVALID_JSON", message="Request body is not valid JSON")


@app.options("/cycle-chat")
async def cycle_chat_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post("/cycle-chat")
async def cycle_chat(request: Request) -> Response:
    log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}"}
    try:
        relay_request = RelayRequest.from_payload(await _json_body(request))
        log_ctx["current_phase"] = relay_request.current_phase.value if relay_request.current_phase else None
        relay = service.get_default_relay()
        stream = await relay.open(relay_request, log_ctx)
    except BusinessError as e:
        return error_response(e)
    except Exception as e:
        log_event(logging.ERROR, "Error in cycle-chat handler", log_ctx, error=str(e))
        return JSONResponse({"error": str(e) or "Unknown error"}, status_code=500, headers=CORS_HEADERS)

    return StreamingResponse(
        relay.forward(stream, log_ctx),
        media_type="text/event-stream",
        headers=CORS_HEADERS,
    )


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/conversations")
async def list_conversations() -> JSONResponse:
    return JSONResponse(service.list_conversations(), headers=CORS_HEADERS)


@app.post("/conversations")
async def create_conversation(request: Request) -> JSONResponse:
    body = await request.body()
    data = await _json_body(request) if body else {}
    title = data.get("title") if isinstance(data, dict) else None
    return JSONResponse(service.create_conversation(title), status_code=201, headers=CORS_HEADERS)


@app.patch("/conversations/{conversation_id}")
async def rename_conversation(conversation_id: str, request: Request) -> JSONResponse:
    data = await _json_body(request)
    title = data.get("title") if isinstance(data, dict) else None
    return JSONResponse(service.rename_conversation(conversation_id, title), headers=CORS_HEADERS)


@app.get("/conversations/{conversation_id}/messages")
async def conversation_messages(conversation_id: str) -> JSONResponse:
    return JSONResponse(service.get_conversation_messages(conversation_id), headers=CORS_HEADERS)


@app.delete("/conversations/{conversation_id}/messages")
async def clear_conversation(conversation_id: str) -> Response:
    service.clear_conversation(conversation_id)
    return Response(status_code=204, headers=CORS_HEADERS)


def main() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    main()
