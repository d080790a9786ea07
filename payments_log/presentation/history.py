"""HTML payment history table shown on the order edit screen."""

from html import escape
from typing import Awaitable, Callable

from payments_log.core.models import EventTypeEnum, PaymentEvent, RefundMethodEnum
from payments_log.core.validation import _is_integer_like

PLACEHOLDER = "—"
DATE_FORMAT = "%Y-%m-%d %H:%M"
COLUMNS = ("Date", "Type", "Amount", "Gateway", "Created Via", "Transaction ID")

UserLookup = Callable[[int], Awaitable[str | None]]


async def created_via(event: PaymentEvent, user_lookup: UserLookup | None = None) -> str:
    metadata = event.payment_metadata if isinstance(event.payment_metadata, dict) else {}

    if event.event_type == EventTypeEnum.PAYMENT:
        channel = metadata.get("created_via")
        return str(channel) if channel not in (None, "") else PLACEHOLDER

    if metadata.get("refund_method") == RefundMethodEnum.GATEWAY_API:
        label = "Gateway API"
    else:
        label = "Manual"

    refunded_by = metadata.get("refunded_by")
    if user_lookup is not None and _is_integer_like(refunded_by) and int(refunded_by):
        display_name = await user_lookup(int(refunded_by))
        if display_name:
            label = f"{label} ({display_name})"

    return label


def _format_amount(event: PaymentEvent) -> str:
    return f"{event.payment_amount:,.2f} {event.currency}"


def _status_mark(event: PaymentEvent) -> str:
    if event.event_type == EventTypeEnum.PAYMENT:
        return '<mark class="order-status status-processing"><span>Payment</span></mark>'
    return '<mark class="order-status status-refunded"><span>Refund</span></mark>'


def _table(body_rows: list[str]) -> str:
    head = "".join(
        f'<th class="amount">{name}</th>' if name == "Amount" else f"<th>{name}</th>"
        for name in COLUMNS
    )
    return (
        '<div class="woocommerce-order-data">'
        '<table class="wc-order-totals">'
        f"<thead><tr>{head}</tr></thead>"
        f"<tbody>{''.join(body_rows)}</tbody>"
        "</table>"
        "</div>"
    )


def _message_row(message: str) -> str:
    return f'<tr><td colspan="{len(COLUMNS)}">{escape(message)}</td></tr>'


async def render_history(
    events: list[PaymentEvent], user_lookup: UserLookup | None = None
) -> str:
    if not events:
        return _table([_message_row("No payment events found for this order.")])

    rows = []
    for event in events:
        via = await created_via(event, user_lookup)
        rows.append(
            "<tr>"
            f"<td>{escape(event.event_ts.strftime(DATE_FORMAT))}</td>"
            f"<td>{_status_mark(event)}</td>"
            f'<td class="amount">{escape(_format_amount(event))}</td>'
            f"<td>{escape(event.payment_gateway)}</td>"
            f"<td>{escape(via)}</td>"
            f"<td>{escape(event.gateway_transaction_id or PLACEHOLDER)}</td>"
            "</tr>"
        )
    return _table(rows)


def render_history_error() -> str:
    return _table([_message_row("Payment history could not be loaded.")])
