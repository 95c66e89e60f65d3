"""
Event routing. Decides what a workflow_run webhook means for us.

    action != "completed"          -> Ignore
    repository not configured      -> UnknownRepository
    otherwise                      -> Dispatch(deploy, artifacts_url)

Pure: network and filesystem work happens after dispatch, elsewhere.
"""

from dataclasses import dataclass
from typing import Mapping

from lanchanto.api_models import WorkflowRunEvent
from lanchanto.config import Config, Deploy

COMPLETED = "completed"


@dataclass(frozen=True)
class Ignore:
    action: str


@dataclass(frozen=True)
class UnknownRepository:
    repository: str


@dataclass(frozen=True)
class Dispatch:
    deploy: Deploy
    artifacts_url: str


RouteDecision = Ignore | UnknownRepository | Dispatch


def _artifacts_url(payload: Mapping) -> str:
    run = payload.get("workflow_run")
    if not isinstance(run, Mapping):
        return ""
    url = run.get("artifacts_url")
    return url if isinstance(url, str) else ""


def route(payload: Mapping, action: str, repo_full_name: str,
          config: Config) -> RouteDecision:
    if action != COMPLETED:
        return Ignore(action)
    deploy = config.find_deploy(repo_full_name)
    if deploy is None:
        return UnknownRepository(repo_full_name)
    return Dispatch(deploy, _artifacts_url(payload))


def route_event(event: WorkflowRunEvent, config: Config) -> RouteDecision:
    """route() for an already-validated payload model."""
    return route(
        event.model_dump(),
        event.action,
        event.repository.full_name,
        config,
    )
