"""
Pydantic models for the webhook payload, the GitHub artifact listing and
our own responses. Only the fields we consume are declared; everything
else in GitHub's payloads is ignored.
"""

from pydantic import BaseModel


# --- Webhook payload (workflow_run event) ---

class Repository(BaseModel):
    full_name: str = ""

class WorkflowRun(BaseModel):
    artifacts_url: str | None = None

class WorkflowRunEvent(BaseModel):
    action: str = ""
    repository: Repository = Repository()
    workflow_run: WorkflowRun = WorkflowRun()


# --- GitHub artifact listing ---

class ArtifactEntry(BaseModel):
    name: str
    archive_download_url: str

class ArtifactList(BaseModel):
    artifacts: list[ArtifactEntry] = []


# --- Responses ---

class WebhookResponse(BaseModel):
    error: str | None = None

class HealthResponse(BaseModel):
    status: str
    deploys: int
    pending: int
