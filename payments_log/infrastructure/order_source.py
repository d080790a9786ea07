import logging
from http import HTTPStatus
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from payments_log.core.exceptions import OrderSourceError
from payments_log.core.models import OrderRecord, RefundRecord

logger = logging.getLogger(__name__)


class OrderSource(Protocol):
    """Read access to the shop platform that owns orders, refunds and users."""

    async def get_order(self, order_id: int) -> OrderRecord | None: ...

    async def get_refund(self, refund_id: int) -> RefundRecord | None: ...

    async def get_user_display_name(self, user_id: int) -> str | None: ...


class InMemoryOrderSource:
    def __init__(
        self,
        orders: list[OrderRecord] | None = None,
        refunds: list[RefundRecord] | None = None,
        users: dict[int, str] | None = None,
    ):
        self._orders = {order.id: order for order in orders or []}
        self._refunds = {refund.id: refund for refund in refunds or []}
        self._users = dict(users or {})

    def add_order(self, order: OrderRecord) -> None:
        self._orders[order.id] = order

    def add_refund(self, refund: RefundRecord) -> None:
        self._refunds[refund.id] = refund

    def add_user(self, user_id: int, display_name: str) -> None:
        self._users[user_id] = display_name

    async def get_order(self, order_id: int) -> OrderRecord | None:
        return self._orders.get(order_id)

    async def get_refund(self, refund_id: int) -> RefundRecord | None:
        return self._refunds.get(refund_id)

    async def get_user_display_name(self, user_id: int) -> str | None:
        return self._users.get(user_id)


class HttpOrderSource:
    """Fetches records from the shop platform's REST API.

    A 404 means the record is gone or not visible yet and maps to ``None``;
    any other failure is raised as ``OrderSourceError``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        auth_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {"Accept": "application/json"}
        if auth_token:
            self._headers["Authorization"] = f"Bearer {auth_token}"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def _fetch(self, path: str) -> dict[str, Any] | None:
        try:
            response = await self._get_client().get(path)
        except httpx.HTTPError as e:
            raise OrderSourceError(f"Request to {path} failed: {e}") from e

        if response.status_code == HTTPStatus.NOT_FOUND:
            return None
        if response.is_error:
            raise OrderSourceError(
                f"Request to {path} returned {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise OrderSourceError(f"Invalid JSON from {path}") from e

    async def get_order(self, order_id: int) -> OrderRecord | None:
        data = await self._fetch(f"/orders/{order_id}")
        if data is None:
            return None
        try:
            return OrderRecord.model_validate(data)
        except ValidationError as e:
            raise OrderSourceError(f"Malformed order {order_id}: {e}") from e

    async def get_refund(self, refund_id: int) -> RefundRecord | None:
        data = await self._fetch(f"/refunds/{refund_id}")
        if data is None:
            return None
        try:
            return RefundRecord.model_validate(data)
        except ValidationError as e:
            raise OrderSourceError(f"Malformed refund {refund_id}: {e}") from e

    async def get_user_display_name(self, user_id: int) -> str | None:
        try:
            data = await self._fetch(f"/users/{user_id}")
        except OrderSourceError as e:
            logger.warning(f"Could not load user {user_id}: {e}")
            return None
        if not isinstance(data, dict):
            return None
        return data.get("display_name") or data.get("name") or None
