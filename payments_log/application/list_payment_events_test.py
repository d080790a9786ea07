from decimal import Decimal

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from payments_log.application.list_payment_events import ListPaymentEventsUseCase
from payments_log.application.record_payment_events import RecordPaymentEventsUseCase
from payments_log.core.exceptions import EventReadError
from payments_log.core.models import EventTypeEnum
from payments_log.infrastructure import repositories
from payments_log.infrastructure.db_schema import payments_log_tbl
from payments_log.infrastructure.order_source import InMemoryOrderSource
from payments_log.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture
def list_events(uow: UnitOfWork) -> ListPaymentEventsUseCase:
    return ListPaymentEventsUseCase(unit_of_work=uow)


class TestListPaymentEventsUseCase:
    @pytest.mark.asyncio
    async def test_payment_then_refund(
        self,
        record_use_case: RecordPaymentEventsUseCase,
        list_events: ListPaymentEventsUseCase,
        order_source: InMemoryOrderSource,
        order_factory,
        refund_factory,
    ):
        # Given
        order_source.add_order(order_factory(id=42, total=Decimal("19.99")))
        order_source.add_refund(refund_factory(parent_id=42, amount=Decimal("5.00")))

        # When
        await record_use_case.record_payment(42)
        await record_use_case.record_refund(4201)
        events = await list_events(42)

        # Then
        assert [e.event_type for e in events] == [
            EventTypeEnum.REFUND,
            EventTypeEnum.PAYMENT,
        ]
        assert events[0].payment_amount == Decimal("-5.00")
        assert events[1].payment_amount == Decimal("19.99")
        assert events[0].event_ts > events[1].event_ts
        assert {e.currency for e in events} == {"USD"}
        assert {e.payment_gateway for e in events} == {"stripe"}

    @pytest.mark.asyncio
    async def test_only_requested_order(
        self,
        record_use_case: RecordPaymentEventsUseCase,
        list_events: ListPaymentEventsUseCase,
        order_source: InMemoryOrderSource,
        order_factory,
    ):
        order_source.add_order(order_factory(id=42))
        order_source.add_order(order_factory(id=43))
        await record_use_case.record_payment(42)
        await record_use_case.record_payment(43)

        events = await list_events(43)

        assert [e.order_id for e in events] == [43]

    @pytest.mark.asyncio
    async def test_no_events(self, list_events: ListPaymentEventsUseCase):
        assert await list_events(42) == []

    @pytest.mark.asyncio
    async def test_query_failure_is_distinguishable(
        self, list_events: ListPaymentEventsUseCase, monkeypatch
    ):
        # Given
        async def failing_list(self, order_id):
            raise OperationalError("SELECT", {}, Exception("no such table"))

        monkeypatch.setattr(
            repositories.PaymentEventRepository, "list_by_order_id", failing_list
        )

        # When/Then
        with pytest.raises(EventReadError, match="order 42"):
            await list_events(42)

    @pytest.mark.asyncio
    async def test_connection_failure_is_distinguishable(
        self, list_events: ListPaymentEventsUseCase, monkeypatch
    ):
        async def refused_list(self, order_id):
            raise ConnectionRefusedError("database host unreachable")

        monkeypatch.setattr(
            repositories.PaymentEventRepository, "list_by_order_id", refused_list
        )

        with pytest.raises(EventReadError, match="order 42"):
            await list_events(42)

    @pytest.mark.asyncio
    async def test_unreadable_row_is_distinguishable(
        self, list_events: ListPaymentEventsUseCase, session: AsyncSession
    ):
        # Given - a row written outside the recorder with an unknown event type
        await session.execute(
            insert(payments_log_tbl).values(
                user_id=7,
                order_id=42,
                event_type="chargeback",
                currency="USD",
                payment_amount=Decimal("-19.99"),
                payment_gateway="stripe",
                payment_method="Credit Card (Stripe)",
            )
        )
        await session.commit()

        # When/Then
        with pytest.raises(EventReadError, match="order 42"):
            await list_events(42)
