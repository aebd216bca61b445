# This project was developed with assistance from AI tools.
"""E-sign provider webhook.

The provider authenticates with a shared secret rather than a user token,
so the webhook acts as a system identity with full visibility.
"""

import hmac
import logging

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import DataScope, UserContext
from ..schemas.workflow import EsignWebhookPayload, WorkflowActionResponse
from ..services.esign import complete_signature, record_signature_failure

logger = logging.getLogger(__name__)

router = APIRouter()

WEBHOOK_USER = UserContext(
    user_id="esign-webhook",
    role=UserRole.SYSTEM_ADMIN,
    email="",
    name="E-sign provider",
    data_scope=DataScope(full_pipeline=True),
)

_FAILURE_STATUSES = frozenset({"FAILED", "DECLINED"})


def verify_webhook_secret(x_webhook_secret: str | None = Header(default=None)) -> None:
    """Reject webhook calls that do not carry the configured shared secret."""
    expected = settings.ESIGN_WEBHOOK_SECRET
    if not expected:
        logger.error("E-sign webhook called but ESIGN_WEBHOOK_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook not configured",
        )
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")


@router.post(
    "/webhook",
    response_model=WorkflowActionResponse,
    dependencies=[Depends(verify_webhook_secret)],
)
async def esign_webhook(
    payload: EsignWebhookPayload,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """``SIGNED`` completes the signature; ``FAILED``/``DECLINED`` reopens sending."""
    provider_status = payload.status.upper()
    logger.info("E-sign webhook: submission=%s status=%s", payload.submission_id, provider_status)

    if provider_status == "SIGNED":
        result = await complete_signature(session, WEBHOOK_USER, payload.submission_id)
    elif provider_status in _FAILURE_STATUSES:
        result = await record_signature_failure(session, WEBHOOK_USER, payload.submission_id, provider_status)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported e-sign status: {payload.status}",
        )
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    return result
