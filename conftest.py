import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from dependency_injector import providers
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payments_log.application.record_payment_events import RecordPaymentEventsUseCase
from payments_log.core.models import MetaEntry, OrderRecord, RefundRecord
from payments_log.infrastructure.db_schema import metadata
from payments_log.infrastructure.installer import install
from payments_log.infrastructure.order_source import InMemoryOrderSource
from payments_log.infrastructure.repositories import PaymentEventRepository
from payments_log.infrastructure.unit_of_work import UnitOfWork
from payments_log.presentation import api
from payments_log.presentation.container import PresentationContainer

CONFIG_PATH = Path(__file__).parent / "payments_log" / "config.yaml"


@pytest.fixture()
def order_source() -> InMemoryOrderSource:
    return InMemoryOrderSource(users={3: "Shop Manager"})


@pytest.fixture()
async def container(tmp_path, order_source: InMemoryOrderSource) -> PresentationContainer:
    container = PresentationContainer()
    container.config.from_yaml(CONFIG_PATH, required=True)
    container.config.from_dict(
        {
            "infrastructure": {
                "db": {"dsn": f"sqlite+aiosqlite:///{tmp_path / 'payments_log.db'}"}
            }
        }
    )
    container.application.infrastructure_container.order_source.override(
        providers.Object(order_source)
    )
    return container


@pytest.fixture()
async def session_factory(
    container: PresentationContainer,
) -> async_sessionmaker[AsyncSession]:
    return container.application.infrastructure_container.session_factory()


@pytest_asyncio.fixture()
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(autouse=True)
async def setup_database(container: PresentationContainer):
    engine = container.application.infrastructure_container.async_engine()
    await install(engine)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
def fast_api_app(container: PresentationContainer):
    app = FastAPI()
    app.include_router(api.router)
    container.wire(modules=[api])
    app.container = container
    yield app
    container.unwire()


@pytest_asyncio.fixture()
async def test_async_client(fast_api_app) -> AsyncClient:
    async with AsyncClient(
        transport=ASGITransport(app=fast_api_app),
        base_url="http://test.com",
    ) as client:
        client.app = fast_api_app
        yield client


@pytest.fixture
def clock():
    start = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(minutes=next(ticks))


@pytest.fixture
def uow(session_factory: async_sessionmaker[AsyncSession]) -> UnitOfWork:
    return UnitOfWork(session_factory)


@pytest.fixture
def record_use_case(
    uow: UnitOfWork, order_source: InMemoryOrderSource, clock
) -> RecordPaymentEventsUseCase:
    return RecordPaymentEventsUseCase(
        unit_of_work=uow, order_source=order_source, clock=clock
    )


@pytest.fixture
def order_factory():
    def _create_order(**kwargs):
        defaults = {
            "id": 42,
            "customer_id": 7,
            "total": Decimal("19.99"),
            "currency": "USD",
            "payment_method": "stripe",
            "payment_method_title": "Credit Card (Stripe)",
            "transaction_id": "ch_3Nx1",
            "created_via": "checkout",
            "date_paid": datetime(2026, 3, 1, 9, 29, tzinfo=timezone.utc),
            "meta_data": [MetaEntry(key="_stripe_refund_id", value="re_3Nx9")],
        }
        defaults.update(kwargs)
        return OrderRecord(**defaults)

    return _create_order


@pytest.fixture
def refund_factory():
    def _create_refund(**kwargs):
        defaults = {
            "id": 4201,
            "parent_id": 42,
            "amount": Decimal("5.00"),
            "reason": "Damaged item",
            "refunded_by": 3,
            "refunded_payment": True,
        }
        defaults.update(kwargs)
        return RefundRecord(**defaults)

    return _create_refund


@pytest.fixture
def event_dto_factory():
    def _create_dto(**kwargs):
        defaults = {
            "user_id": 7,
            "order_id": 42,
            "event_type": "payment",
            "currency": "USD",
            "payment_amount": Decimal("19.99"),
            "gateway_transaction_id": "ch_3Nx1",
            "payment_gateway": "stripe",
            "payment_method": "Credit Card (Stripe)",
            "payment_metadata": {"created_via": "checkout"},
        }
        defaults.update(kwargs)
        return PaymentEventRepository.CreateDTO(**defaults)

    return _create_dto


@pytest.fixture
async def payment_event_repo(session: AsyncSession) -> PaymentEventRepository:
    return PaymentEventRepository(session)
