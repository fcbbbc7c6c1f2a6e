"""
Email dispatch endpoint.

  POST /api/send-email   {to, subject, html, attachment?} → SendEmailResult

The body is passed to the mailer as a plain dict so that malformed requests
come back as a SendEmailResult with field errors rather than FastAPI's
default 422 envelope.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from mailcannon.dependencies import get_stats_store
from mailcannon.models.email import SendEmailResult
from mailcannon.services.mailer import send_email
from mailcannon.services.stats_store import StatsStore

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/send-email", response_model=SendEmailResult)
def send_email_endpoint(
    payload: dict[str, Any] = Body(...),
    stats: StatsStore = Depends(get_stats_store),
):
    """
    Broadcast one email to every address in `to`.

    200: sent (or simulated when no SMTP credentials are configured)
    400: validation failed; nothing was sent
    502: the mail server rejected or failed the send

    Successful sends bump the usage counters: one email per recipient and
    one CV when an attachment was included.
    """
    result = send_email(payload)

    if not result.success:
        status_code = 400 if isinstance(result.error, list) else 502
        return JSONResponse(status_code=status_code, content=result.model_dump())

    recipient_count = len(payload.get("to") or [])
    cvs_sent = 1 if payload.get("attachment") else 0
    try:
        stats.increment_stats(recipient_count, cvs_sent)
    except OSError as e:
        # Already sent; report success regardless
        logger.error(f"Sent to {recipient_count} recipient(s) but could not save usage counters: {e}")

    return result
