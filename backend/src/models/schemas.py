"""Pydantic request/response/error schemas."""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel

from src.models.news import SourceCitation

# --- Chat API schemas ---


class ChatRequest(BaseModel):
    message: str | None = None


class ChatResponse(BaseModel):
    message: str
    sources: list[SourceCitation]
    session_id: str


class HealthResponse(BaseModel):
    status: Literal["ok"]
    timestamp: datetime.datetime
    vector_store: Literal["connected", "disconnected"]


# --- Error schema ---


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict = {}
