"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from app.api.handlers import handle_ask, handle_stats
from app.schemas.query import ErrorResponse, QueryRequest, StatsResponse

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid question"},
    503: {"model": ErrorResponse, "description": "Records unavailable"},
}


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Agent query assistant running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Query ---

@router.post(
    "/ask",
    tags=["query"],
    summary="Ask a question about agents and their logins (streamed)",
    responses=ERROR_RESPONSES,
    description="Streams the answer as text/plain. 400 on invalid input, 503 when records are unavailable.",
)
def post_ask(body: QueryRequest, request: Request) -> StreamingResponse:
    return handle_ask(request, body)


@router.get(
    "/stats",
    response_model=StatsResponse,
    tags=["query"],
    summary="Record counts",
    responses={503: ERROR_RESPONSES[503]},
    description="Total agents, distinct companies and distinct nationalities, read from the record store.",
)
def get_stats(request: Request) -> StatsResponse:
    return handle_stats(request)
