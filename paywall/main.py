import hashlib
import hmac
import json
import logging

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from paywall import config
from paywall.admin_routes import router as admin_router
from paywall.database import Base, engine, SessionLocal
from paywall.exceptions import PaywallError
from paywall.payments import COMPLETED, mark_paid
from paywall.routes import router

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Movie Paywall Payment Service")

app.include_router(router)
app.include_router(admin_router)

Base.metadata.create_all(bind=engine)


@app.exception_handler(PaywallError)
async def paywall_error_handler(request: Request, exc: PaywallError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def verify_signature(payload: bytes, signature):
    secret = config.webhook_secret()
    if not secret:
        logger.warning("PAKASIR_WEBHOOK_SECRET is not set; accepting unsigned webhook")
        return
    expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    if not signature or not hmac.compare_digest(expected, signature):
        raise HTTPException(status_code=400, detail="Invalid signature")


@app.post("/api/webhook")
async def pakasir_webhook(request: Request, x_pakasir_signature: str = Header(None)):
    payload = await request.body()
    verify_signature(payload, x_pakasir_signature)

    try:
        data = json.loads(payload or b"{}")
    except ValueError:
        logger.warning("Webhook with invalid JSON body ignored")
        return {"received": True}

    order_id = data.get("order_id") if isinstance(data, dict) else None
    status = data.get("status") if isinstance(data, dict) else None
    logger.info("Webhook received order_id=%s status=%s", order_id, status)

    if status != COMPLETED:
        return {"received": True}

    # The provider does not resend on failure, so errors are only logged.
    db = SessionLocal()
    try:
        completed_at = data.get("completed_at")
        if completed_at is not None and not isinstance(completed_at, str):
            completed_at = str(completed_at)
        mark_paid(db, order_id, completed_at)
    except (PaywallError, SQLAlchemyError):
        db.rollback()
        logger.exception("Failed to record completed payment for %s", order_id)
    finally:
        db.close()

    return {"received": True}
