# This project was developed with assistance from AI tools.
"""Agency notifications, dispatched as post-commit effects."""

import logging

from db import Agency
from sqlalchemy.ext.asyncio import AsyncSession

from .collaborators import get_notification_client

logger = logging.getLogger(__name__)


async def notify_agency(
    session: AsyncSession,
    agency_id: int,
    subject: str,
    message: str,
) -> bool:
    """Send a message to the agency's contact address.

    Returns whether a message was handed to the notification service.
    """
    agency = await session.get(Agency, agency_id)
    recipient = agency.email if agency is not None else None
    sent = await get_notification_client().notify(recipient, subject, message)
    if sent:
        logger.info("Notified agency %s: %s", agency_id, subject)
    return sent
