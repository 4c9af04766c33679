import logging

from fastapi import Depends, Header, HTTPException
from jose import jwt
from jose.exceptions import JOSEError

from paywall import config
from paywall.database import SessionLocal
from paywall.models import Employee

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "super_admin")


def verify_token(authorization: str = Header(...)):
    secret = config.jwt_secret()
    if not secret:
        logger.error("JWT_SECRET is not set; refusing bearer tokens")
        raise HTTPException(status_code=401, detail="Invalid or missing token")

    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("unsupported scheme")
        return jwt.decode(token, secret, algorithms=["HS256"])
    except (ValueError, JOSEError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")


def require_admin(claims: dict = Depends(verify_token)):
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or missing token")

    db = SessionLocal()
    try:
        caller = db.get(Employee, user_id)
        role = caller.role if caller else None
    finally:
        db.close()

    if role not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Forbidden")
    return user_id
