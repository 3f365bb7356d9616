"""Answer streaming: retrieval -> prompt -> Gemini stream -> SSE frames."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from src.models.news import (
    ChatAnswer,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    RetrievedDoc,
    SourceCitation,
    StreamEvent,
)
from src.services.generation import GeminiGenerator
from src.services.retriever import Retriever

logger = logging.getLogger(__name__)

DONE_FRAME = "data: [DONE]\n\n"

FALLBACK_MESSAGE = (
    "I found some relevant information about your query. Based on recent news, "
    "there have been various developments related to your question. However, "
    "I'm currently unable to access my full knowledge base. Please try again "
    "later or rephrase your question."
)

ERROR_MESSAGE = (
    "I apologize, but I'm experiencing some technical difficulties right now. "
    "Please try again in a moment, or rephrase your question."
)

PROMPT_TEMPLATE = """\
You are a helpful news chatbot. Answer the user's question based on the \
following recent news articles. If the information isn't available in the \
provided context, politely say so and offer general assistance.

Context from recent news:
{context}

User question: {query}

Please provide a helpful and accurate response based on the context above. \
Keep your response concise and informative."""


class StreamState(enum.Enum):
    RETRIEVING = "retrieving"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class CancelToken:
    """Set by the consumer to stop a stream; checked before every event."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def build_prompt(query: str, docs: list[RetrievedDoc]) -> str:
    context = "\n\n".join(
        f"Title: {d.title}\nSource: {d.source}\nContent: {d.text}" for d in docs
    )
    return PROMPT_TEMPLATE.format(context=context, query=query)


def citations(docs: list[RetrievedDoc], limit: int = 3) -> list[SourceCitation]:
    """Top-scoring docs as citations, highest score first."""
    ranked = sorted(docs, key=lambda d: d.score, reverse=True)
    return [
        SourceCitation(title=d.title, date=d.date, url=d.url) for d in ranked[:limit]
    ]


def encode_event(event: StreamEvent) -> str:
    return f"data: {event.model_dump_json()}\n\n"


async def sse_frames(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Encode events as SSE frames and finish with the [DONE] terminator."""
    async with aclosing(events) as stream:
        async for event in stream:
            yield encode_event(event)
    yield DONE_FRAME


class AnswerStreamer:
    def __init__(
        self,
        retriever: Retriever,
        generator: GeminiGenerator | None,
        *,
        top_k: int = 5,
        max_sources: int = 3,
        fallback_delay: float = 0.05,
    ) -> None:
        self.retriever = retriever
        self.generator = generator
        self.top_k = top_k
        self.max_sources = max_sources
        self.fallback_delay = fallback_delay

    async def stream(
        self, query: str, cancel: CancelToken | None = None
    ) -> AsyncIterator[StreamEvent]:
        """Yield chunk events in model order, then one complete event.

        Any failure ends the stream with a single error event; chunks already
        sent stay sent. A cancelled stream stops without a complete event and
        releases the model stream.
        """
        cancel = cancel or CancelToken()
        state = StreamState.RETRIEVING
        try:
            docs = await self.retriever.retrieve(query, self.top_k)
            if cancel.cancelled:
                logger.info("Stream cancelled during %s", state.value)
                return

            state = StreamState.GENERATING
            prompt = build_prompt(query, docs)
            sent = 0
            async with aclosing(self._fragments(prompt)) as fragments:
                async for fragment in fragments:
                    if cancel.cancelled:
                        logger.info(
                            "Stream cancelled during %s after %d chunks",
                            state.value,
                            sent,
                        )
                        return
                    sent += 1
                    yield ChunkEvent(content=fragment)
            if cancel.cancelled:
                logger.info("Stream cancelled before completion (%d chunks)", sent)
                return

            state = StreamState.COMPLETE
            sources = citations(docs, self.max_sources)
            logger.info(
                "Stream %s: %d chunks, %d sources", state.value, sent, len(sources)
            )
            yield CompleteEvent(sources=sources)
        except Exception:
            logger.exception(
                "Answer stream failed: %s -> %s", state.value, StreamState.ERROR.value
            )
            yield ErrorEvent(message=ERROR_MESSAGE)

    async def _fragments(self, prompt: str) -> AsyncIterator[str]:
        if self.generator is None:
            # Simulated typing so clients see the same protocol
            for i, word in enumerate(FALLBACK_MESSAGE.split(" ")):
                if i:
                    await asyncio.sleep(self.fallback_delay)
                yield word if i == 0 else f" {word}"
            return

        async with self.generator.stream(prompt) as fragments:
            async for fragment in fragments:
                if fragment:
                    yield fragment

    async def answer(self, query: str) -> ChatAnswer:
        """Non-streaming answer with the same fallback and failure message."""
        try:
            docs = await self.retriever.retrieve(query, self.top_k)
            if self.generator is None:
                message = FALLBACK_MESSAGE
            else:
                message = await self.generator.generate(build_prompt(query, docs))
        except Exception:
            logger.exception("Error processing query")
            return ChatAnswer(message=ERROR_MESSAGE, sources=[])
        return ChatAnswer(message=message, sources=citations(docs, self.max_sources))
