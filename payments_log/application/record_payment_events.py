import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from payments_log.core.exceptions import EventValidationError, OrderSourceError
from payments_log.core.gateways import resolve_refund_reference
from payments_log.core.models import (
    EventTypeEnum,
    OrderRecord,
    RecordResult,
    RecordStatusEnum,
    RefundMethodEnum,
    RefundRecord,
)
from payments_log.core.validation import validate_event_row
from payments_log.infrastructure.order_source import OrderSource
from payments_log.infrastructure.repositories import PaymentEventRepository
from payments_log.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

# Called with (event_type, row, order) right before validation; returns the row to store.
RecordFilter = Callable[[EventTypeEnum, dict[str, Any], OrderRecord], dict[str, Any]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordPaymentEventsUseCase:
    def __init__(
        self,
        unit_of_work: UnitOfWork,
        order_source: OrderSource,
        clock: Callable[[], datetime] = utcnow,
        record_filters: Iterable[RecordFilter] = (),
    ):
        self._unit_of_work = unit_of_work
        self._order_source = order_source
        self._clock = clock
        self._record_filters = list(record_filters)

    def add_record_filter(self, record_filter: RecordFilter) -> None:
        self._record_filters.append(record_filter)

    async def record_payment(self, order_id: int) -> RecordResult:
        try:
            order = await self._order_source.get_order(order_id)
        except OrderSourceError as e:
            logger.error(f"Could not load order {order_id}: {e}")
            return RecordResult(status=RecordStatusEnum.FAILED, error=str(e))

        if order is None:
            logger.info(f"Order {order_id} not found, payment not logged")
            return RecordResult(status=RecordStatusEnum.SKIPPED)

        metadata = {
            "created_via": order.created_via or None,
            "date_paid": order.date_paid.isoformat() if order.date_paid else None,
        }
        row = self._build_row(
            event_type=EventTypeEnum.PAYMENT,
            order=order,
            amount=order.total,
            transaction_id=order.transaction_id or None,
            metadata=metadata,
        )
        return await self._store(EventTypeEnum.PAYMENT, row, order)

    async def record_refund(self, refund_id: int) -> RecordResult:
        try:
            refund = await self._order_source.get_refund(refund_id)
            order = (
                await self._order_source.get_order(refund.parent_id)
                if refund is not None
                else None
            )
        except OrderSourceError as e:
            logger.error(f"Could not load refund {refund_id}: {e}")
            return RecordResult(status=RecordStatusEnum.FAILED, error=str(e))

        if refund is None or order is None:
            logger.info(f"Refund {refund_id} or its order not found, refund not logged")
            return RecordResult(status=RecordStatusEnum.SKIPPED)

        metadata = {
            "refund_reason": refund.reason or None,
            "refund_method": self._refund_method(refund),
            "refunded_by": refund.refunded_by or None,
        }
        row = self._build_row(
            event_type=EventTypeEnum.REFUND,
            order=order,
            amount=-abs(refund.amount),
            transaction_id=resolve_refund_reference(
                order.payment_method, refund, order
            ),
            metadata=metadata,
        )
        return await self._store(EventTypeEnum.REFUND, row, order)

    @staticmethod
    def _refund_method(refund: RefundRecord) -> RefundMethodEnum:
        if refund.refunded_payment:
            return RefundMethodEnum.GATEWAY_API
        return RefundMethodEnum.MANUAL

    def _build_row(
        self,
        event_type: EventTypeEnum,
        order: OrderRecord,
        amount,
        transaction_id: str | None,
        metadata: dict[str, Any],
    ) -> dict[str, Any]:
        return {
            "user_id": order.customer_id,
            "order_id": order.id,
            "event_type": str(event_type),
            "event_ts": self._clock(),
            "currency": order.currency,
            "payment_amount": amount,
            "gateway_transaction_id": transaction_id,
            "payment_gateway": order.payment_method,
            "payment_method": order.payment_method_title,
            "payment_metadata": json.dumps(metadata),
        }

    async def _store(
        self, event_type: EventTypeEnum, row: dict[str, Any], order: OrderRecord
    ) -> RecordResult:
        try:
            for record_filter in self._record_filters:
                row = record_filter(event_type, row, order)
        except Exception as e:
            logger.error(
                f"Record filter failed for {event_type} event on order {order.id}: {e}",
                exc_info=True,
            )
            return RecordResult(status=RecordStatusEnum.FAILED, error=str(e))

        try:
            validate_event_row(row)
        except EventValidationError as e:
            logger.error(
                f"Invalid {event_type} event for order {order.id}, not logged: {e}"
            )
            return RecordResult(status=RecordStatusEnum.REJECTED, error=str(e))

        metadata = row.get("payment_metadata")
        dto = PaymentEventRepository.CreateDTO(
            user_id=int(row["user_id"]),
            order_id=int(row["order_id"]),
            event_type=row["event_type"],
            event_ts=row.get("event_ts"),
            currency=row["currency"],
            payment_amount=str(row["payment_amount"]),
            gateway_transaction_id=row.get("gateway_transaction_id") or None,
            payment_gateway=row["payment_gateway"],
            payment_method=row["payment_method"],
            payment_metadata=json.loads(metadata) if metadata else None,
        )

        async with self._unit_of_work() as uow:
            try:
                await uow.begin()
                event = await uow.payment_events.create(dto)
                await uow.commit()
            except Exception as e:
                await uow.rollback()
                logger.error(
                    f"Failed to log {event_type} event for order {order.id}: {e}",
                    exc_info=True,
                )
                return RecordResult(status=RecordStatusEnum.FAILED, error=str(e))

        logger.info(f"Logged {event_type} event {event.id} for order {order.id}")
        return RecordResult(status=RecordStatusEnum.RECORDED, event=event)
