"""Anonymous browser identity kept in a long-lived cookie."""

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone

from fastapi import Request, Response

from paywall.config import CLIENT_ID_COOKIE

logger = logging.getLogger(__name__)

COOKIE_MAX_AGE_YEARS = 10


def generate_client_id() -> str:
    return f"user_{secrets.token_urlsafe(9)}{int(time.time() * 1000)}"


def get_or_create_client_id(request: Request, response: Response) -> str:
    """Return the caller's client id, issuing the cookie on first visit.

    Browsers that refuse cookies get a fresh id on every call, so their
    repeat purchases are not deduplicated.
    """
    client_id = request.cookies.get(CLIENT_ID_COOKIE)
    if client_id:
        return client_id

    client_id = generate_client_id()
    expires = datetime.now(timezone.utc) + timedelta(days=365 * COOKIE_MAX_AGE_YEARS)
    response.set_cookie(
        key=CLIENT_ID_COOKIE,
        value=client_id,
        expires=expires,
        path="/",
        samesite="strict",
    )
    logger.info("Issued new client id %s", client_id)
    return client_id
