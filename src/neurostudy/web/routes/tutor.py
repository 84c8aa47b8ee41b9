"""AI tutor endpoints.

POST /api/tutor/chat streams the gateway's reply as SSE delta lines:

    data: {"choices":[{"delta":{"content":"..."}}]}
    data: [DONE]

Upstream failures detected before the first fragment are answered with a
JSON body {"error": message} and the mapped status code. Later failures end
the stream with a data: {"error": message} event and no [DONE].
"""

from typing import Iterator

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from neurostudy.core.tutor_prompt import ChapterContext, build_greeting, build_system_prompt
from neurostudy.core.tutor_stream import (
    format_delta_event,
    format_done_event,
    format_error_event,
    tutor_error_message,
)
from neurostudy.llm.client import GatewayError, LLMClient, Message
from neurostudy.web.schemas import GreetingRequest, GreetingResponse, TutorChatRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/tutor", tags=["tutor"])

# Overridable in tests
_client_factory = LLMClient


def _chapter_context(request) -> ChapterContext | None:
    if request.chapter_context is None:
        return None
    return ChapterContext(
        title=request.chapter_context.title,
        summary=request.chapter_context.summary,
        key_points=tuple(request.chapter_context.key_points),
    )


def _sse_events(first: str | None, rest: Iterator[str]) -> Iterator[str]:
    if first is not None:
        yield format_delta_event(first)
    try:
        for fragment in rest:
            yield format_delta_event(fragment)
    except GatewayError as e:
        # Headers are already sent; the error travels as an event
        logger.error("tutor_stream_interrupted", error=str(e))
        yield format_error_event(tutor_error_message(e))
        return
    yield format_done_event()


@router.post("/chat")
def tutor_chat(request: TutorChatRequest):
    """Stream a tutor reply for the conversation so far."""
    system_prompt = build_system_prompt(request.modes, _chapter_context(request))
    messages = [Message(role="system", content=system_prompt)]
    messages.extend(Message(role=m.role, content=m.content) for m in request.messages)

    logger.info(
        "tutor_chat_request",
        modes=request.modes,
        messages=len(request.messages),
        has_chapter=request.chapter_context is not None,
    )

    fragments = iter(_client_factory().chat_stream(messages))
    try:
        first = next(fragments, None)
    except GatewayError as e:
        logger.error("tutor_gateway_error", status=e.status_code, error=str(e))
        status_code = e.status_code if e.status_code in (402, 429) else 500
        return JSONResponse(
            status_code=status_code,
            content={"error": tutor_error_message(e)},
        )

    return StreamingResponse(
        _sse_events(first, fragments),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.post("/greeting", response_model=GreetingResponse)
async def tutor_greeting(request: GreetingRequest) -> GreetingResponse:
    """Opening message for a new chat."""
    return GreetingResponse(
        greeting=build_greeting(request.modes, _chapter_context(request))
    )
