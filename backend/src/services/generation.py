"""Gemini text generation, whole-response and streamed."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from google import genai
from google.genai import errors, types

from src.config import Settings

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Raised when the generative model call fails."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


def create_generator(settings: Settings) -> GeminiGenerator | None:
    """Build the Gemini generator, or None when no credentials are configured."""
    http_options = types.HttpOptions(
        timeout=int(settings.request_timeout_seconds * 1000)
    )
    if settings.google_api_key:
        client = genai.Client(
            api_key=settings.google_api_key, http_options=http_options
        )
    elif settings.use_vertexai:
        client = genai.Client(
            vertexai=True,
            project=settings.gcp_project_id,
            location=settings.gcp_location,
            http_options=http_options,
        )
    else:
        logger.warning("No Gemini credentials configured; using fallback answers")
        return None
    return GeminiGenerator(client, settings.ai_model)


class GeminiGenerator:
    def __init__(self, client: genai.Client, model: str) -> None:
        self.client = client
        self.model = model

    async def generate(self, prompt: str) -> str:
        logger.info(
            "Generating answer (model=%s, prompt=%d chars)", self.model, len(prompt)
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model, contents=prompt
            )
        except (errors.APIError, httpx.HTTPError) as e:
            raise GenerationError(
                code="GENERATION_FAILED", message=f"Gemini call failed: {e}"
            ) from e
        return response.text or ""

    @asynccontextmanager
    async def stream(self, prompt: str) -> AsyncIterator[AsyncIterator[str]]:
        """Open a model stream; yields an iterator of text fragments.

        The underlying response stream is closed when the block exits, including
        when the consumer stops early.
        """
        logger.info(
            "Streaming answer (model=%s, prompt=%d chars)", self.model, len(prompt)
        )
        try:
            response_stream = await self.client.aio.models.generate_content_stream(
                model=self.model, contents=prompt
            )
        except (errors.APIError, httpx.HTTPError) as e:
            raise GenerationError(
                code="GENERATION_FAILED", message=f"Gemini stream failed to open: {e}"
            ) from e

        try:
            yield self._fragments(response_stream)
        finally:
            aclose = getattr(response_stream, "aclose", None)
            if aclose is not None:
                await aclose()
                logger.debug("Closed Gemini response stream")

    async def _fragments(self, response_stream) -> AsyncIterator[str]:
        try:
            async for chunk in response_stream:
                if chunk.text:
                    yield chunk.text
        except (errors.APIError, httpx.HTTPError) as e:
            raise GenerationError(
                code="GENERATION_FAILED", message=f"Gemini stream failed: {e}"
            ) from e
