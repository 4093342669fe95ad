"""
API handlers: read request state, call services, map results to HTTP.

Responsibility: Bridge HTTP types and services. Planning runs before the
streaming response is created so that pipeline errors still become
structured JSON errors; only generation is streamed.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import logging

from fastapi import Request
from fastapi.responses import StreamingResponse

from app.core.errors import ServiceUnavailableError
from app.schemas.query import QueryRequest, StatsResponse
from app.services.agent_service import AgentServices, plan_answer, stream_answer

logger = logging.getLogger(__name__)


def get_services(request: Request) -> AgentServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise ServiceUnavailableError("Service is still starting up.")
    return services


def handle_ask(request: Request, body: QueryRequest) -> StreamingResponse:
    services = get_services(request)
    client = request.client.host if request.client else "-"
    logger.info("[api:ask] IN  question=%r ip=%s", body.question, client)
    plan = plan_answer(services, body.question)
    return StreamingResponse(
        stream_answer(services, plan),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


def handle_stats(request: Request) -> StatsResponse:
    services = get_services(request)
    stats = services.store.compute_stats()
    logger.info("[api:stats] OUT %s", stats)
    return StatsResponse(**stats)
