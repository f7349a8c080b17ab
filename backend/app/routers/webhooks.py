"""
Identity provider webhook endpoint.
"""

from __future__ import annotations

import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_bootstrap_service
from app.schemas.webhook import WebhookEvent, WebhookResult
from app.services.bootstrap_service import BootstrapService
from app.services.webhook_service import WebhookService

router = APIRouter()


def get_webhook_service(
    db: AsyncSession = Depends(get_db),
    bootstrap: BootstrapService = Depends(get_bootstrap_service),
) -> WebhookService:
    return WebhookService(db=db, bootstrap=bootstrap)


async def verify_webhook_secret(
    x_webhook_secret: str | None = Header(default=None),
) -> None:
    """Shared-secret check, enabled when WEBHOOK_SECRET is set."""
    if settings.WEBHOOK_SECRET is None:
        return
    if x_webhook_secret is None or not secrets.compare_digest(
        x_webhook_secret, settings.WEBHOOK_SECRET
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_WEBHOOK_SECRET", "message": "Webhook secret mismatch"},
        )


@router.post(
    "/identity",
    response_model=WebhookResult,
    dependencies=[Depends(verify_webhook_secret)],
    summary="Receive identity provider events",
)
async def identity_webhook(
    event: WebhookEvent,
    service: WebhookService = Depends(get_webhook_service),
) -> WebhookResult:
    """Sync users, organizations and memberships. Unknown events are ignored."""
    return await service.handle(event)
