"""Pydantic models for GitHub webhook payloads and the webhook response body."""

from pydantic import BaseModel, ConfigDict


class PushRepository(BaseModel):
    """The subset of ``repository`` the mirror needs.

    Every field is optional here; which ones are required depends on the
    decision being made and is enforced by the payload interpreter.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    ssh_url: str | None = None
    default_branch: str | None = None


class PushWebhookPayload(BaseModel):
    """GitHub webhook envelope, read leniently so non-push events still parse.

    Reference: https://docs.github.com/en/webhooks/webhook-events-and-payloads#push
    """

    model_config = ConfigDict(extra="ignore")

    ref: str | None = None
    repository: PushRepository | None = None
    deleted: bool = False


class WebhookResponse(BaseModel):
    """JSON body returned for every ``POST /webhook`` delivery."""

    success: bool
    repository: str | None = None
    action: str | None = None
    branch: str | None = None
    output: str | None = None
    message: str
    error: str | None = None
    stderr: str | None = None
