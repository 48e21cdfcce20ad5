import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

"""
Seed demo data (products, services with consumables, a customer, an admin) into the DB.

This script can be run from either:
- backend/: `uv run python scripts/seed_demo_data.py`
- repo root: `uv run python backend/scripts/seed_demo_data.py`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select  # noqa: E402
from fastapi_users.password import PasswordHelper  # noqa: E402

from db.database import async_session_maker, create_db_and_tables  # noqa: E402
from db.users import User  # noqa: E402
from db.customer import Customer  # noqa: E402
from db.product import Product  # noqa: E402
from db.service_item import ServiceItem, ServiceConsumable  # noqa: E402
from db.setting import GLOBAL_LOW_STOCK_THRESHOLD_KEY, Setting  # noqa: E402


password_helper = PasswordHelper()


@dataclass(frozen=True)
class SeedProduct:
    sku: str
    name: str
    unit: str
    capacity_per_container: Decimal
    containers: int
    low_stock_threshold: int | None = None


@dataclass(frozen=True)
class SeedConsumable:
    sku: str
    default: Decimal
    unit: str
    overrides: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SeedService:
    name: str
    price: Decimal
    duration_minutes: int
    consumables: list[SeedConsumable]


PRODUCTS = [
    SeedProduct("SHAMPOO-1L", "Salon Shampoo 1L", "ml", Decimal("1000"), 10),
    SeedProduct("COND-1L", "Conditioner 1L", "ml", Decimal("1000"), 6),
    SeedProduct("COLOR-TUBE", "Permanent Color Tube", "g", Decimal("60"), 40, low_stock_threshold=8),
    SeedProduct("DEVELOPER-1L", "Developer 6%", "ml", Decimal("1000"), 4),
    SeedProduct("GLOVES", "Nitrile Gloves (pair)", "piece", Decimal("1"), 200, low_stock_threshold=50),
    SeedProduct("FOIL-ROLL", "Highlighting Foil Roll", "m", Decimal("100"), 3, low_stock_threshold=1),
]

SERVICES = [
    SeedService(
        "Haircut & Wash",
        Decimal("35"),
        45,
        [
            SeedConsumable("SHAMPOO-1L", Decimal("30"), "ml", {"male": 20, "female": 40}),
            SeedConsumable("COND-1L", Decimal("20"), "ml", {"female": 35}),
        ],
    ),
    SeedService(
        "Global Color",
        Decimal("90"),
        120,
        [
            SeedConsumable("COLOR-TUBE", Decimal("60"), "g", {"male": 40, "female": 90}),
            SeedConsumable("DEVELOPER-1L", Decimal("60"), "ml", {"male": 40, "female": 90}),
            SeedConsumable("GLOVES", Decimal("1"), "piece"),
            SeedConsumable("SHAMPOO-1L", Decimal("25"), "ml"),
        ],
    ),
    SeedService(
        "Highlights",
        Decimal("120"),
        150,
        [
            SeedConsumable("COLOR-TUBE", Decimal("45"), "g"),
            SeedConsumable("FOIL-ROLL", Decimal("3"), "m", {"female": 5}),
            SeedConsumable("GLOVES", Decimal("1"), "piece"),
        ],
    ),
    SeedService("Beard Trim", Decimal("15"), 20, []),
]


async def get_or_create_user(session, email: str, password: str) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        email=email,
        hashed_password=password_helper.hash(password),
        is_active=True,
        is_superuser=True,
        is_verified=True,
        full_name="Salon Admin",
    )
    session.add(user)
    await session.flush()
    return user


async def get_or_create_product(session, seed: SeedProduct) -> Product:
    result = await session.execute(select(Product).where(func.upper(Product.sku) == seed.sku.upper()))
    product = result.scalar_one_or_none()
    if product:
        return product

    on_hand = Decimal(seed.containers) if seed.unit == "piece" else seed.capacity_per_container * seed.containers
    product = Product(
        sku=seed.sku.upper(),
        name=seed.name,
        unit=seed.unit,
        capacity_per_container=seed.capacity_per_container,
        on_hand=on_hand,
        low_stock_threshold=seed.low_stock_threshold,
        is_active=True,
    )
    session.add(product)
    await session.flush()
    return product


async def get_or_create_service(session, seed: SeedService, products_by_sku: dict[str, Product]) -> ServiceItem:
    result = await session.execute(select(ServiceItem).where(func.lower(ServiceItem.name) == seed.name.lower()))
    service = result.scalar_one_or_none()
    if service:
        return service

    service = ServiceItem(name=seed.name, price=seed.price, duration_minutes=seed.duration_minutes)
    session.add(service)
    await session.flush()
    for c in seed.consumables:
        session.add(
            ServiceConsumable(
                service_id=service.id,
                product_id=products_by_sku[c.sku].id,
                default_quantity=c.default,
                quantity_overrides=dict(c.overrides) or None,
                unit=c.unit,
            )
        )
    await session.flush()
    return service


async def seed(admin_email: str, admin_password: str, low_stock_threshold: int) -> None:
    await create_db_and_tables()
    async with async_session_maker() as session:
        await get_or_create_user(session, admin_email, admin_password)

        products_by_sku: dict[str, Product] = {}
        for p in PRODUCTS:
            products_by_sku[p.sku] = await get_or_create_product(session, p)

        for s in SERVICES:
            await get_or_create_service(session, s, products_by_sku)

        result = await session.execute(select(Customer).where(Customer.phone == "0500000000"))
        if result.scalar_one_or_none() is None:
            session.add(Customer(name="Demo Customer", phone="0500000000", gender="female"))

        setting = await session.get(Setting, GLOBAL_LOW_STOCK_THRESHOLD_KEY)
        if setting is None:
            session.add(
                Setting(
                    key=GLOBAL_LOW_STOCK_THRESHOLD_KEY,
                    value=str(low_stock_threshold),
                    description="Containers at or below which a product is reported as low after a sale",
                )
            )
        else:
            setting.value = str(low_stock_threshold)

        await session.commit()
    print(f"Seeded {len(PRODUCTS)} products and {len(SERVICES)} services")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--admin-email", default="admin@salon.local")
    parser.add_argument("--admin-password", default="admin123")
    parser.add_argument("--low-stock-threshold", type=int, default=10, help="Global low-stock floor in containers")
    args = parser.parse_args()

    asyncio.run(seed(args.admin_email, args.admin_password, args.low_stock_threshold))
