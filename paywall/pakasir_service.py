import logging
from urllib.parse import urlencode

import requests

from paywall import config
from paywall.exceptions import ProviderError

logger = logging.getLogger(__name__)


def _api_key() -> str:
    key = (config.pakasir_api_key() or "").strip()
    if not key:
        raise ProviderError("PAKASIR_API_KEY is not configured")
    return key


def _error_message(body, status_code):
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or f"HTTP {status_code}"
    return f"HTTP {status_code}"


def _json(resp, endpoint):
    try:
        body = resp.json()
    except ValueError:
        logger.warning(
            "Pakasir: invalid JSON from %s (HTTP %s): %s",
            endpoint,
            resp.status_code,
            (resp.text or "")[:300],
        )
        raise ProviderError(f"Invalid response from payment provider (HTTP {resp.status_code})")

    if not resp.ok:
        logger.warning("Pakasir: %s answered HTTP %s: %s", endpoint, resp.status_code, body)
        # Upstream client errors surface as 400, anything else as 500.
        status_code = 400 if 400 <= resp.status_code < 500 else 500
        raise ProviderError(_error_message(body, resp.status_code), status_code=status_code)
    return body


def create_transaction(order_id: str, amount: int) -> dict:
    """Create a QRIS transaction; returns the provider body as-is."""
    url = f"{config.PAKASIR_BASE_URL}/api/transactioncreate/qris"
    payload = {
        "project": config.PAKASIR_PROJECT,
        "order_id": order_id,
        "amount": amount,
        "api_key": _api_key(),
    }
    logger.info("Pakasir: creating transaction order_id=%s amount=%s", order_id, amount)
    try:
        resp = requests.post(url, json=payload, timeout=config.PAKASIR_TIMEOUT)
    except requests.RequestException as exc:
        logger.warning("Pakasir: transactioncreate failed for %s", order_id, exc_info=True)
        raise ProviderError(str(exc))
    return _json(resp, "transactioncreate")


def build_payment_url(order_id: str, amount: int) -> str:
    # The provider does not return this; the QRIS-only checkout view is derived
    # from the project, amount and order id.
    query = urlencode({"order_id": order_id, "qris_only": 1})
    return f"{config.PAKASIR_BASE_URL}/pay/{config.PAKASIR_PROJECT}/{amount}?{query}"


def get_transaction_detail(order_id: str, amount: int) -> dict:
    url = f"{config.PAKASIR_BASE_URL}/api/transactiondetail"
    params = {
        "project": config.PAKASIR_PROJECT,
        "order_id": order_id,
        "amount": amount,
        "api_key": _api_key(),
    }
    logger.debug("Pakasir: transaction detail order_id=%s", order_id)
    try:
        resp = requests.get(url, params=params, timeout=config.PAKASIR_TIMEOUT)
    except requests.RequestException as exc:
        logger.warning("Pakasir: transactiondetail failed for %s", order_id, exc_info=True)
        raise ProviderError(str(exc))
    if resp.status_code == 404:
        # No transaction for this order yet; callers read it as pending.
        logger.info("Pakasir: no transaction yet for %s", order_id)
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
    return _json(resp, "transactiondetail")
