"""Schemas for the ask and stats endpoints."""

import re

from pydantic import BaseModel, Field, field_validator

from app.core.config import QUESTION_ALLOWED_CHARS, QUESTION_MAX_LENGTH

_ALLOWED_RE = re.compile(QUESTION_ALLOWED_CHARS)


class QueryRequest(BaseModel):
    """Request body for POST /ask."""

    question: str = Field(..., description="Natural-language question about agents or their logins.")

    @field_validator("question")
    @classmethod
    def _check_question(cls, value: str) -> str:
        question = value.strip()
        if not question or len(question) > QUESTION_MAX_LENGTH:
            raise ValueError(f"Question must be between 1 and {QUESTION_MAX_LENGTH} characters")
        if not _ALLOWED_RE.match(question):
            raise ValueError("Question contains invalid characters")
        return question

    model_config = {
        "json_schema_extra": {"examples": [{"question": "When did CHAGT001 last login?"}]}
    }


class StatsResponse(BaseModel):
    """Response for GET /stats."""

    total_agents: int = Field(..., description="Number of agent profiles.")
    companies: int = Field(..., description="Number of distinct company names.")
    nationalities: int = Field(..., description="Number of distinct nationalities.")


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Body of every error response."""

    success: bool = False
    error: ErrorDetail
