"""Chat API endpoints."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from src.dependencies import ServiceContainer, get_services
from src.models.news import StreamEvent
from src.models.schemas import ChatRequest, ChatResponse, ErrorDetail
from src.services.answer_streamer import CancelToken, sse_frames

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

MIN_SESSION_ID_LENGTH = 10


def _validated_message(session_id: str, body: ChatRequest) -> str:
    message = (body.message or "").strip()
    if not message:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(
                code="MESSAGE_REQUIRED", message="Message is required"
            ).model_dump(),
        )
    if len(session_id) < MIN_SESSION_ID_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(
                code="INVALID_SESSION_ID", message="Invalid session ID"
            ).model_dump(),
        )
    return message


async def _frames_until_disconnect(
    request: Request, events: AsyncIterator[StreamEvent], cancel: CancelToken
) -> AsyncIterator[str]:
    async with aclosing(sse_frames(events)) as frames:
        async for frame in frames:
            if await request.is_disconnected():
                logger.info("Client disconnected; cancelling stream")
                cancel.cancel()
                break
            yield frame


@router.post("/{session_id}/stream")
async def stream_chat(
    session_id: str,
    body: ChatRequest,
    request: Request,
    services: ServiceContainer = Depends(get_services),
) -> StreamingResponse:
    message = _validated_message(session_id, body)
    logger.info("Streaming answer for session %s", session_id)
    cancel = CancelToken()
    events = services.streamer.stream(message, cancel)
    return StreamingResponse(
        _frames_until_disconnect(request, events, cancel),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.post("/{session_id}", response_model=ChatResponse)
async def chat(
    session_id: str,
    body: ChatRequest,
    services: ServiceContainer = Depends(get_services),
) -> ChatResponse:
    message = _validated_message(session_id, body)
    logger.info("Received message for session %s: %r", session_id, message)
    answer = await services.streamer.answer(message)
    return ChatResponse(
        message=answer.message, sources=answer.sources, session_id=session_id
    )
