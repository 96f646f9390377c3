import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.observability import setup_observability
from src.api.routers.investment_proposals import router as investment_proposal_router
from src.api.routers.investment_proposals import shutdown_investment_services


@asynccontextmanager
async def _app_lifespan(_app: FastAPI):
    yield
    shutdown_investment_services(wait=False)


app = FastAPI(
    title="Investment Proposal API",
    version="0.1.0",
    description=(
        "Investment proposal management service.\n\n"
        "Proposals are validated against the configured investment limit, persisted, "
        "and followed by asynchronous risk assessment and client notification tasks."
    ),
    openapi_tags=[
        {
            "name": "Investment Proposals",
            "description": "Proposal lifecycle, filtering, and portfolio summary endpoints.",
        },
        {
            "name": "Health",
            "description": "Liveness probe.",
        },
    ],
    lifespan=_app_lifespan,
)

setup_observability(app)
logger = logging.getLogger(__name__)

app.include_router(investment_proposal_router)


@app.exception_handler(Exception)
async def unhandled_exception_to_problem_details(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception while serving request", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": str(exc) or "An unexpected error occurred.",
            "instance": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@app.get("/health", tags=["Health"], summary="Liveness Probe")
def health() -> dict[str, str]:
    return {"status": "UP"}
