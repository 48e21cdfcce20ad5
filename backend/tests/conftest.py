import os

# Must be set before any app module creates the module-level engine.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from db import Base, Customer, Product, ServiceConsumable, ServiceItem, Setting  # noqa: E402


@pytest.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture()
def make_product(session):
    counter = {"n": 0}

    async def _make(
        unit="ml",
        capacity=100,
        on_hand=1000,
        low_stock_threshold=None,
        name=None,
        is_active=True,
    ) -> Product:
        counter["n"] += 1
        product = Product(
            sku=f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            unit=unit,
            capacity_per_container=Decimal(str(capacity)),
            on_hand=Decimal(str(on_hand)),
            low_stock_threshold=low_stock_threshold,
            is_active=is_active,
        )
        session.add(product)
        await session.commit()
        return product

    return _make


@pytest.fixture()
def make_service(session):
    async def _make(*consumables, name="Service") -> ServiceItem:
        """Each consumable is (product, default_quantity[, overrides])."""
        service = ServiceItem(name=name, price=Decimal("50"), duration_minutes=30)
        session.add(service)
        await session.flush()
        for c in consumables:
            product, default = c[0], c[1]
            overrides = c[2] if len(c) > 2 else None
            session.add(
                ServiceConsumable(
                    service_id=service.id,
                    product_id=product.id,
                    default_quantity=Decimal(str(default)),
                    quantity_overrides=overrides,
                    unit=product.unit,
                )
            )
        await session.commit()
        return service

    return _make


@pytest.fixture()
def make_customer(session):
    async def _make(gender="other", name="Dana") -> Customer:
        customer = Customer(name=name, gender=gender)
        session.add(customer)
        await session.commit()
        return customer

    return _make


@pytest.fixture()
def set_setting(session):
    async def _set(key: str, value: str) -> Setting:
        setting = Setting(key=key, value=value)
        session.add(setting)
        await session.commit()
        return setting

    return _set
