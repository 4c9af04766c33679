from paywall.exceptions import ValidationError

ORDER_ID_SEPARATOR = "_"


def build_order_id(resource_id: str, client_id: str) -> str:
    if not resource_id or not client_id:
        raise ValidationError("Missing resource id or client id")
    # The first separator marks the boundary, so resource ids may not hold one.
    if ORDER_ID_SEPARATOR in resource_id:
        raise ValidationError(f"Resource id may not contain '{ORDER_ID_SEPARATOR}'")
    return f"{resource_id}{ORDER_ID_SEPARATOR}{client_id}"


def parse_order_id(order_id: str):
    """Split a composite order id back into ``(resource_id, client_id)``."""
    if not isinstance(order_id, str):
        raise ValidationError(f"Malformed order id: {order_id!r}")
    resource_id, sep, client_id = order_id.partition(ORDER_ID_SEPARATOR)
    if not sep or not resource_id or not client_id:
        raise ValidationError(f"Malformed order id: {order_id!r}")
    return resource_id, client_id
