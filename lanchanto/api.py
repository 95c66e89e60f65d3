"""
FastAPI application. One webhook endpoint for GitHub workflow_run events.

    POST /github   verify signature → parse → route → enqueue deploy
    GET  /github   plain-text landing
    GET  /health   liveness + queue depth

The response is sent as soon as the deploy is queued; its outcome is
only visible in the logs. Configuration is injected through
create_app() and stored on app.state, never read from globals.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from lanchanto import __version__
from lanchanto.api_errors import (
    APIError, api_error_handler,
    invalid_body, invalid_credential, queue_full, unknown_repository,
)
from lanchanto.api_models import HealthResponse, WebhookResponse, WorkflowRunEvent
from lanchanto.config import Config
from lanchanto.errors import VerificationError
from lanchanto.router import Dispatch, Ignore, UnknownRepository, route_event
from lanchanto.signature import verify
from lanchanto.worker import DeployJob, DeployQueue

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Landing + Health
# ---------------------------------------------------------------------------

@router.get("/github", response_class=PlainTextResponse)
async def landing() -> str:
    return "Hello, world!"


@router.get("/health")
async def health(request: Request) -> HealthResponse:
    deploys: DeployQueue = request.app.state.deploys
    return HealthResponse(
        status="ok" if deploys.running else "stopped",
        deploys=len(request.app.state.config.deploy),
        pending=deploys.pending,
    )


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------

@router.post("/github")
async def github_webhook(request: Request) -> WebhookResponse:
    """Handle a workflow_run delivery. Never waits for the deploy."""
    config: Config = request.app.state.config
    event_name = request.headers.get("x-github-event", "")
    delivery = request.headers.get("x-github-delivery", "")

    # Signature is checked against the raw bytes, before any parsing.
    body = await request.body()
    try:
        verify(config.credential.github_webhook_secret.encode(),
               request.headers, body)
    except VerificationError as e:
        logger.warning("rejected %s delivery %s: %s",
                       event_name or "unknown", delivery, e)
        raise invalid_credential()

    try:
        event = WorkflowRunEvent.model_validate_json(body)
    except ValidationError as e:
        logger.warning("malformed %s delivery %s: %s",
                       event_name or "unknown", delivery, e.errors()[:1])
        raise invalid_body()

    decision = route_event(event, config)

    if isinstance(decision, Ignore):
        logger.info("ignoring %s delivery %s (action=%r)",
                    event_name or "unknown", delivery, decision.action)
        return WebhookResponse()

    if isinstance(decision, UnknownRepository):
        logger.warning("delivery %s for unknown repository %r",
                       delivery, decision.repository)
        raise unknown_repository()

    if not isinstance(decision, Dispatch):
        raise TypeError(f"unexpected route decision: {decision!r}")
    job = DeployJob(deploy=decision.deploy,
                    artifacts_url=decision.artifacts_url)
    if not request.app.state.deploys.submit(job):
        raise queue_full()
    logger.info("queued deploy of %s (delivery %s)",
                decision.deploy.repository, delivery)
    return WebhookResponse()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    deploys: DeployQueue = app.state.deploys
    deploys.start()
    try:
        yield
    finally:
        await deploys.stop()


def create_app(config: Config, deploys: DeployQueue | None = None) -> FastAPI:
    """Build the app around a loaded config. `deploys` is for tests."""
    app = FastAPI(title="lanchanto", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.deploys = deploys or DeployQueue(config)
    app.add_exception_handler(APIError, api_error_handler)
    app.include_router(router)
    return app
