from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel
from sqlalchemy import Row, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from payments_log.core.models import EventTypeEnum, PaymentEvent
from payments_log.infrastructure.db_schema import payments_log_tbl


class DoesNotExist(Exception):
    pass


class PaymentEventRepository:
    """Append-only access to the payments log table."""

    class CreateDTO(BaseModel):
        user_id: int
        order_id: int
        event_type: EventTypeEnum
        event_ts: datetime | None = None
        currency: str
        payment_amount: Decimal
        gateway_transaction_id: str | None = None
        payment_gateway: str
        payment_method: str
        payment_metadata: Any = None

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> PaymentEvent:
        if row is None:
            raise DoesNotExist

        return PaymentEvent(
            id=row._mapping["id"],
            user_id=row._mapping["user_id"],
            order_id=row._mapping["order_id"],
            event_type=row._mapping["event_type"],
            event_ts=row._mapping["event_ts"],
            currency=row._mapping["currency"],
            payment_amount=row._mapping["payment_amount"],
            gateway_transaction_id=row._mapping["gateway_transaction_id"],
            payment_gateway=row._mapping["payment_gateway"],
            payment_method=row._mapping["payment_method"],
            payment_metadata=row._mapping["payment_metadata"],
        )

    async def create(self, event: CreateDTO) -> PaymentEvent:
        values = event.model_dump(exclude_none=True)
        values["event_type"] = str(event.event_type)
        values["gateway_transaction_id"] = event.gateway_transaction_id
        values["payment_metadata"] = event.payment_metadata

        stmt = insert(payments_log_tbl).values(values).returning(*payments_log_tbl.c)
        result = await self._session.execute(stmt)
        row = result.fetchone()

        return self._construct(row)

    async def list_by_order_id(self, order_id: int) -> list[PaymentEvent]:
        stmt = (
            select(payments_log_tbl)
            .where(payments_log_tbl.c.order_id == order_id)
            .order_by(payments_log_tbl.c.event_ts.desc(), payments_log_tbl.c.id.desc())
        )
        result = await self._session.execute(stmt)
        rows = result.fetchall()

        return [self._construct(row) for row in rows]
