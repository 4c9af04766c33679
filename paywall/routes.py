import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from paywall.database import SessionLocal
from paywall.exceptions import NotFoundError, PaymentRequiredError
from paywall.identity import get_or_create_client_id
from paywall.models import Movie, Purchase
from paywall.orders import build_order_id
from paywall.payments import (
    COMPLETED,
    create_payment,
    get_transaction_status,
    is_unlocked,
    record_transaction,
    transaction_status,
    upsert_purchase,
)
from paywall.poller import RetryPolicy, poll_transaction_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

MOVIES_PER_PAGE = 12

# Short server-side wait for callers that return straight from the QRIS view.
ACCESS_WAIT_POLICY = RetryPolicy(max_attempts=5, initial_delay=1.0, backoff=2.0, max_delay=4.0)


class PayRequest(BaseModel):
    # Optional so a missing field is answered with our own 400 message.
    order_id: Optional[str] = None
    amount: Optional[int] = None


def _movie_or_404(db, movie_id):
    movie = db.get(Movie, movie_id)
    if movie is None:
        raise NotFoundError(f"Movie {movie_id} not found")
    return movie


def _movie_summary(movie):
    return {
        "id": movie.id,
        "title": movie.title,
        "image": movie.image,
        "minute": movie.minute,
        "price": movie.price,
        "created_at": movie.created_at.isoformat() if movie.created_at else None,
    }


@router.post("/pay")
def pay(request: PayRequest):
    return create_payment(request.order_id, request.amount)


@router.get("/transactiondetail")
def transaction_detail(order_id: Optional[str] = None, amount: Optional[int] = None):
    body = get_transaction_status(order_id, amount)

    if transaction_status(body) == COMPLETED:
        db = SessionLocal()
        try:
            record_transaction(db, order_id, body)
        finally:
            db.close()

    return body


@router.get("/movies")
def list_movies(search: Optional[str] = None, page: int = 1):
    db = SessionLocal()
    try:
        query = db.query(Movie)
        if search:
            query = query.filter(Movie.title.ilike(f"%{search}%"))
        movies = query.order_by(Movie.created_at.desc()).all()
    finally:
        db.close()

    total_pages = math.ceil(len(movies) / MOVIES_PER_PAGE)
    # Out-of-range pages (e.g. after narrowing the search) fall back to page 1.
    if page < 1 or page > total_pages:
        page = 1

    start = (page - 1) * MOVIES_PER_PAGE
    return {
        "movies": [_movie_summary(m) for m in movies[start:start + MOVIES_PER_PAGE]],
        "page": page,
        "total_pages": total_pages,
    }


@router.get("/movies/{movie_id}/order")
def movie_order(movie_id: str, client_id: str = Depends(get_or_create_client_id)):
    db = SessionLocal()
    try:
        movie = _movie_or_404(db, movie_id)
        order_id = build_order_id(movie.id, client_id)

        purchase = db.get(Purchase, order_id)
        if purchase is not None and purchase.status == COMPLETED:
            status = COMPLETED
        else:
            body = get_transaction_status(order_id, movie.price)
            status = transaction_status(body) or "pending"
            record_transaction(db, order_id, body)

        return {"order_id": order_id, "amount": movie.price, "status": status}
    finally:
        db.close()


@router.post("/movies/{movie_id}/checkout")
def movie_checkout(movie_id: str, client_id: str = Depends(get_or_create_client_id)):
    db = SessionLocal()
    try:
        movie = _movie_or_404(db, movie_id)
        order_id = build_order_id(movie.id, client_id)

        purchase = db.get(Purchase, order_id)
        if purchase is not None and purchase.status == COMPLETED:
            return {"order_id": order_id, "status": COMPLETED}

        result = create_payment(order_id, movie.price)
        upsert_purchase(db, order_id, amount=movie.price)
        db.commit()

        logger.info("Checkout started for %s", order_id)
        return {"order_id": order_id, "payment_url": result["payment_url"], "status": "pending"}
    finally:
        db.close()


@router.get("/movies/{movie_id}/access")
def movie_access(
    movie_id: str,
    wait: bool = False,
    client_id: str = Depends(get_or_create_client_id),
):
    db = SessionLocal()
    try:
        movie = _movie_or_404(db, movie_id)
        order_id = build_order_id(movie.id, client_id)

        unlocked = is_unlocked(db, order_id, movie.price)
        if not unlocked and wait:
            result = poll_transaction_status(order_id, movie.price, policy=ACCESS_WAIT_POLICY)
            if result.completed:
                record_transaction(db, order_id, {"transaction": result.transaction})
                unlocked = True

        if not unlocked:
            raise PaymentRequiredError("Payment not completed")

        return {"order_id": order_id, "drive_url": movie.drive_url}
    finally:
        db.close()
