"""Gateway specific lookup of the transaction id a refund was issued under.

Every payment gateway plugin stores the refund reference in its own place:
some on the parent order, some on the refund itself, some nowhere at all.
Strategies are registered per gateway key so a new gateway only needs a
``register_gateway`` call.
"""

from typing import Any, Protocol

from payments_log.core.models import OrderRecord, RefundRecord


class RefundReferenceStrategy(Protocol):
    def resolve(self, refund: RefundRecord, order: OrderRecord) -> str | None: ...


def _as_reference(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class OrderMetaReference:
    def __init__(self, meta_key: str):
        self._meta_key = meta_key

    def resolve(self, refund: RefundRecord, order: OrderRecord) -> str | None:
        return _as_reference(order.get_meta(self._meta_key))


class RefundMetaReference:
    def __init__(self, meta_key: str):
        self._meta_key = meta_key

    def resolve(self, refund: RefundRecord, order: OrderRecord) -> str | None:
        return _as_reference(refund.get_meta(self._meta_key))


class OrderMetaFirstEntryReference:
    """The order keeps every refund id it has seen as a list, oldest first."""

    def __init__(self, meta_key: str):
        self._meta_key = meta_key

    def resolve(self, refund: RefundRecord, order: OrderRecord) -> str | None:
        entries = order.get_meta(self._meta_key)
        if not isinstance(entries, (list, tuple)) or not entries:
            return None
        return _as_reference(entries[0])


class NoReference:
    def resolve(self, refund: RefundRecord, order: OrderRecord) -> str | None:
        return None


_registry: dict[str, RefundReferenceStrategy] = {
    "stripe": OrderMetaReference("_stripe_refund_id"),
    "woocommerce_payments": RefundMetaReference("_wcpay_refund_id"),
    "ppcp-gateway": OrderMetaFirstEntryReference("_ppcp_refunds"),
    "square_credit_card": RefundMetaReference("_square_refund_id"),
    "android_in_app_purchase": NoReference(),
    "apple_in_app_purchase": NoReference(),
}


def register_gateway(gateway: str, strategy: RefundReferenceStrategy) -> None:
    _registry[gateway] = strategy


def registered_gateways() -> list[str]:
    return sorted(_registry)


def resolve_refund_reference(
    gateway: str, refund: RefundRecord, parent_order: OrderRecord
) -> str | None:
    strategy = _registry.get(gateway)
    if strategy is None:
        return None
    return strategy.resolve(refund, parent_order)
