import logging

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from payments_log.core.exceptions import EventReadError
from payments_log.core.models import PaymentEvent
from payments_log.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ListPaymentEventsUseCase:
    def __init__(self, unit_of_work: UnitOfWork):
        self._unit_of_work = unit_of_work

    async def __call__(self, order_id: int) -> list[PaymentEvent]:
        """Events of one order, most recent first.

        An order without events gives an empty list; a failed query raises
        ``EventReadError`` instead.
        """
        try:
            async with self._unit_of_work() as uow:
                return await uow.payment_events.list_by_order_id(order_id)
        except (SQLAlchemyError, ValidationError, OSError) as e:
            logger.error(
                f"Failed to load payment events for order {order_id}: {e}",
                exc_info=True,
            )
            raise EventReadError(
                f"Could not load payment events for order {order_id}"
            ) from e
