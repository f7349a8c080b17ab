from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class WebhookEvent(BaseModel):
    """Identity provider event envelope."""

    type: str
    data: dict[str, Any] = {}


class WebhookResult(BaseModel):
    event: str
    status: str
    detail: str | None = None
