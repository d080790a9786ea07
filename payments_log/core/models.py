from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class EventTypeEnum(StrEnum):
    PAYMENT = "payment"
    REFUND = "refund"


class RefundMethodEnum(StrEnum):
    GATEWAY_API = "gateway_api"
    MANUAL = "manual"


class PaymentEvent(BaseModel):
    id: int
    user_id: int
    order_id: int
    event_type: EventTypeEnum
    event_ts: datetime
    currency: str
    payment_amount: Decimal
    gateway_transaction_id: str | None = None
    payment_gateway: str
    payment_method: str
    payment_metadata: Any = None


class MetaEntry(BaseModel):
    key: str
    value: Any = None


class _HasMeta(BaseModel):
    meta_data: list[MetaEntry] = Field(default_factory=list)

    def get_meta(self, key: str, default: Any = None) -> Any:
        for entry in self.meta_data:
            if entry.key == key:
                return entry.value
        return default


class OrderRecord(_HasMeta):
    id: int
    customer_id: int = 0
    total: Decimal
    currency: str
    payment_method: str = ""
    payment_method_title: str = ""
    transaction_id: str | None = None
    created_via: str | None = None
    date_paid: datetime | None = None


class RefundRecord(_HasMeta):
    id: int
    parent_id: int
    amount: Decimal
    reason: str | None = None
    refunded_by: int | None = None
    refunded_payment: bool = False


class RecordStatusEnum(StrEnum):
    RECORDED = "recorded"
    SKIPPED = "skipped"
    REJECTED = "rejected"
    FAILED = "failed"


class RecordResult(BaseModel):
    status: RecordStatusEnum
    event: PaymentEvent | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (RecordStatusEnum.RECORDED, RecordStatusEnum.SKIPPED)
