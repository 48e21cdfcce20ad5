"""Tests for committing deductions to stock."""

import uuid
from decimal import Decimal

import pytest

from db.setting import GLOBAL_LOW_STOCK_THRESHOLD_KEY
from services.inventory import (
    InsufficientStock,
    InvalidQuantity,
    NotFound,
    UsageDeduction,
    ValidationError,
    apply_deductions,
    apply_service_deductions,
    preview_impact,
)
from services.inventory.stock import decrement_stock


def _deduct(product, amount):
    return UsageDeduction(product_id=product.id, amount=Decimal(str(amount)), unit=product.unit, product_name=product.name)


class TestDecrementStock:
    async def test_piece_product_deducts_pieces(self, session, make_product):
        gloves = await make_product(unit="piece", capacity=1, on_hand=10)

        product = await decrement_stock(session, gloves.id, Decimal("4"))

        assert product.on_hand == 6
        assert product.container_count == 6
        assert product.fine_quantity == 6

    async def test_continuous_product_recomputes_containers(self, session, make_product):
        serum = await make_product(unit="ml", capacity=25, on_hand=40)

        product = await decrement_stock(session, serum.id, Decimal("15"))

        assert product.fine_quantity == 25
        assert product.container_count == 1

    async def test_insufficient_leaves_balance(self, session, make_product):
        gloves = await make_product(unit="piece", capacity=1, on_hand=3, name="Gloves")

        with pytest.raises(InsufficientStock) as exc_info:
            await decrement_stock(session, gloves.id, Decimal("5"))

        assert exc_info.value.available == 3
        assert exc_info.value.requested == 5
        await session.refresh(gloves)
        assert gloves.on_hand == 3

    async def test_missing_product(self, session):
        with pytest.raises(NotFound):
            await decrement_stock(session, uuid.uuid4(), Decimal("1"))

    async def test_fractional_piece_amount_raises(self, session, make_product):
        gloves = await make_product(unit="piece", capacity=1, on_hand=3)

        with pytest.raises(InvalidQuantity):
            await decrement_stock(session, gloves.id, Decimal("0.5"))

        await session.refresh(gloves)
        assert gloves.on_hand == 3

    async def test_whole_piece_amount_with_decimal_places_is_accepted(self, session, make_product):
        gloves = await make_product(unit="piece", capacity=1, on_hand=3)

        product = await decrement_stock(session, gloves.id, Decimal("2.000"))

        assert product.on_hand == 1

    async def test_fractional_fine_amount_is_fine(self, session, make_product):
        serum = await make_product(unit="ml", capacity=25, on_hand=40)

        product = await decrement_stock(session, serum.id, Decimal("0.5"))

        assert product.fine_quantity == Decimal("39.5")


class TestApplyDeductions:
    async def test_piece_shortfall_reports_error_and_keeps_count(self, session, make_product):
        gloves = await make_product(unit="piece", capacity=1, on_hand=3, name="Gloves")

        result = await apply_deductions(session, [_deduct(gloves, 5)])

        assert result.all_succeeded is False
        assert result.errors == ["Insufficient stock for Gloves."]
        assert result.updated == []
        await session.refresh(gloves)
        assert gloves.container_count == 3

    async def test_fractional_piece_amount_recorded_and_skipped(self, session, make_product):
        foils = await make_product(unit="piece", capacity=250, on_hand=3, name="Foils")
        shampoo = await make_product(unit="ml", capacity=1000, on_hand=5000, name="Shampoo")

        result = await apply_deductions(session, [_deduct(foils, 0.5), _deduct(shampoo, 300)])

        assert result.all_succeeded is False
        assert len(result.errors) == 1
        assert "Foils" in result.errors[0]
        assert result.updated == [shampoo.id]
        await session.refresh(foils)
        assert foils.on_hand == 3
        assert foils.fine_quantity == foils.container_count * foils.capacity == 750

    async def test_partial_failure_continues_with_other_products(self, session, make_product):
        gloves = await make_product(unit="piece", capacity=1, on_hand=3, name="Gloves")
        shampoo = await make_product(unit="ml", capacity=1000, on_hand=5000, name="Shampoo")
        missing = uuid.uuid4()

        result = await apply_deductions(
            session,
            [
                _deduct(gloves, 5),
                UsageDeduction(product_id=missing, amount=Decimal("1"), unit="ml"),
                _deduct(shampoo, 300),
            ],
        )

        assert result.all_succeeded is False
        assert len(result.errors) == 2
        assert f"Product with ID {missing} not found." in result.errors
        assert result.updated == [shampoo.id]
        await session.refresh(shampoo)
        await session.refresh(gloves)
        assert shampoo.on_hand == 4700
        assert gloves.on_hand == 3

    async def test_exact_balance_reaches_zero_then_rejects(self, session, make_product):
        foil = await make_product(unit="m", capacity=100, on_hand=30)

        first = await apply_deductions(session, [_deduct(foil, 30)])
        second = await apply_deductions(session, [_deduct(foil, 1)])

        assert first.all_succeeded is True
        assert second.all_succeeded is False
        await session.refresh(foil)
        assert foil.on_hand == 0
        assert foil.container_count == 0
        assert foil.fine_quantity == 0

    async def test_zero_amount_is_skipped(self, session, make_product):
        shampoo = await make_product()

        result = await apply_deductions(session, [_deduct(shampoo, 0)])

        assert result.all_succeeded is True
        assert result.updated == []

    async def test_low_stock_products_use_default_threshold(self, session, make_product):
        # 1000 ml in 100 ml bottles: 9 full bottles after the sale, default floor is 10.
        shampoo = await make_product(unit="ml", capacity=100, on_hand=1000)
        developer = await make_product(unit="ml", capacity=100, on_hand=500, low_stock_threshold=2)

        result = await apply_deductions(session, [_deduct(shampoo, 1), _deduct(developer, 50)])

        assert result.all_succeeded is True
        assert [p.product_id for p in result.low_stock_products] == [shampoo.id]
        assert result.low_stock_products[0].container_count == 9
        assert result.low_stock_products[0].threshold == 10

    async def test_low_stock_products_use_global_setting(self, session, make_product, set_setting):
        await set_setting(GLOBAL_LOW_STOCK_THRESHOLD_KEY, "3")
        shampoo = await make_product(unit="ml", capacity=100, on_hand=1000)

        result = await apply_deductions(session, [_deduct(shampoo, 1)])

        assert result.low_stock_products == []

    async def test_balances_never_negative(self, session, make_product):
        products = [
            await make_product(unit="piece", capacity=1, on_hand=2),
            await make_product(unit="ml", capacity=50, on_hand=75),
            await make_product(unit="g", capacity=60, on_hand=0),
        ]

        for amount in (1, 2, 50, 100):
            await apply_deductions(session, [_deduct(p, amount) for p in products])

        for p in products:
            await session.refresh(p)
            assert p.on_hand >= 0
            assert p.container_count >= 0
            assert p.fine_quantity >= 0


class TestApplyServiceDeductions:
    async def test_matches_preview(self, session, make_product, make_service):
        shampoo = await make_product(unit="ml", capacity=100, on_hand=1000)
        gloves = await make_product(unit="piece", capacity=1, on_hand=20)
        cut = await make_service((shampoo, 100, {"female": 200}))
        color = await make_service((shampoo, 150), (gloves, 2))
        service_ids = [cut.id, color.id]

        preview = {s.product_id: s.remaining_amount for s in await preview_impact(session, service_ids, "female")}
        result = await apply_service_deductions(session, service_ids, "female")

        assert result.all_succeeded is True
        await session.refresh(shampoo)
        await session.refresh(gloves)
        assert shampoo.on_hand == preview[shampoo.id] == 650
        assert gloves.on_hand == preview[gloves.id] == 18

    async def test_validation_error_before_any_mutation(self, session):
        with pytest.raises(ValidationError):
            await apply_service_deductions(session, [], None)

    async def test_unknown_service_aborts_before_mutation(self, session, make_product, make_service):
        shampoo = await make_product(unit="ml", capacity=100, on_hand=1000)
        cut = await make_service((shampoo, 100))

        with pytest.raises(NotFound):
            await apply_service_deductions(session, [cut.id, uuid.uuid4()], None)

        await session.refresh(shampoo)
        assert shampoo.on_hand == 1000
