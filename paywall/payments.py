"""Order/payment correlation between the catalog and the payment provider."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from paywall.exceptions import ProviderError, ValidationError
from paywall.models import Movie, Purchase
from paywall.orders import parse_order_id
from paywall.pakasir_service import build_payment_url, create_transaction, get_transaction_detail

logger = logging.getLogger(__name__)

COMPLETED = "completed"


def create_payment(order_id, amount):
    if not order_id or not amount:
        raise ValidationError("Missing order_id or amount")

    data = create_transaction(order_id, amount)

    if not (data.get("payment") or {}).get("payment_number"):
        logger.error("Pakasir returned no payment_number for %s: %s", order_id, data)
        raise ProviderError("Failed to create transaction")

    return {"payment_url": build_payment_url(order_id, amount), "data": data}


def get_transaction_status(order_id, amount):
    if not order_id or not amount:
        raise ValidationError("Missing order_id or amount")
    return get_transaction_detail(order_id, amount)


def transaction_status(body):
    return ((body or {}).get("transaction") or {}).get("status")


def upsert_purchase(db, order_id, amount=None, status="pending", payment_method=None, completed_at=None):
    """Create or update the local purchase record for a composite order id."""
    movie_id, client_id = parse_order_id(order_id)

    purchase = db.get(Purchase, order_id)
    if purchase is None:
        purchase = Purchase(order_id=order_id, movie_id=movie_id, client_id=client_id)
        db.add(purchase)

    # Never downgrade a completed purchase.
    if purchase.status != COMPLETED:
        purchase.status = status
    if amount is not None:
        purchase.amount = amount
    if payment_method:
        purchase.payment_method = payment_method
    if completed_at:
        purchase.completed_at = completed_at
    return purchase


def record_transaction(db, order_id, body):
    """Keep a local copy of a completed provider transaction, if any."""
    transaction = (body or {}).get("transaction") or {}
    if transaction.get("status") != COMPLETED:
        return None
    # The provider stays authoritative, so a failed local write is only logged.
    try:
        purchase = upsert_purchase(
            db,
            order_id,
            amount=transaction.get("amount"),
            status=COMPLETED,
            payment_method=transaction.get("payment_method"),
            completed_at=transaction.get("completed_at"),
        )
        db.commit()
    except ValidationError:
        logger.info("Not recording transaction for non-composite order id %s", order_id)
        return None
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record completed transaction for %s", order_id)
        return None
    return purchase


def mark_paid(db, order_id, completed_at):
    """Flag the purchase and its movie as paid after a completion callback.

    ``order_id`` is the composite id sent to the provider; the movie key is
    its resource part, never the whole string.
    """
    movie_id, _ = parse_order_id(order_id)
    upsert_purchase(db, order_id, status=COMPLETED, completed_at=completed_at)

    movie = db.get(Movie, movie_id)
    if movie is None:
        logger.warning("Webhook for %s names unknown movie %s", order_id, movie_id)
    else:
        movie.paid = True
        movie.completed_at = completed_at

    db.commit()
    return movie


def is_unlocked(db, order_id, amount):
    """True once the order is completed locally or at the provider."""
    purchase = db.get(Purchase, order_id)
    if purchase is not None and purchase.status == COMPLETED:
        return True

    body = get_transaction_status(order_id, amount)
    if transaction_status(body) == COMPLETED:
        record_transaction(db, order_id, body)
        return True
    return False
