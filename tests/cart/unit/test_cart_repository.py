"""
Unit Tests: CartRepository and CartService against an in-memory database

Covers:
- Line merge on repeated add (decimal string arithmetic)
- Anonymous vs user carts
- Quantity updates, removal and clear
- Validation errors raised before anything is written
"""

from decimal import Decimal

import pytest

from exceptions.cart import CartLineNotFoundException, InvalidQuantityException
from exceptions.product import ProductNotFoundException
from models.cartItem import CartItemDTO
from models.product import ProductDTO
from repositories.cart import CartRepository
from repositories.product import ProductRepository
from services.cart import CartService


@pytest.fixture
def products():
    """Products sold by the piece and by weight, plus an unavailable one."""
    return {
        "bread": ProductDTO(name="Bread", price=Decimal("1500"), unit="piece"),
        "tomato": ProductDTO(name="Tomato", price=Decimal("2000"), unit="kg"),
        "old": ProductDTO(name="Discontinued", price=Decimal("500"), unit="piece", is_available=False),
    }


async def _create_products(products, session) -> dict[str, int]:
    ids = {}
    for key, product in products.items():
        ids[key] = await ProductRepository.create(product, session)
    session.commit()
    return ids


class TestCartRepository:

    @pytest.mark.asyncio
    async def test_add_same_product_merges_line(self, session, products):
        ids = await _create_products(products, session)

        await CartRepository.add_to_cart(CartItemDTO(product_id=ids["tomato"], quantity="1.5"), session)
        merged = await CartRepository.add_to_cart(CartItemDTO(product_id=ids["tomato"], quantity="0.25"), session)
        session.commit()

        lines = await CartRepository.get_lines(None, session)
        assert len(lines) == 1
        assert lines[0].quantity == "1.75"
        assert merged.quantity == "1.75"
        assert lines[0].product.name == "Tomato"

    @pytest.mark.asyncio
    async def test_integral_sum_has_no_trailing_zeros(self, session, products):
        ids = await _create_products(products, session)

        await CartRepository.add_to_cart(CartItemDTO(product_id=ids["bread"], quantity="2.0"), session)
        await CartRepository.add_to_cart(CartItemDTO(product_id=ids["bread"], quantity=1), session)

        line = await CartRepository.get_by_product(ids["bread"], None, session)
        assert line.quantity == "3"

    @pytest.mark.asyncio
    async def test_carts_are_scoped_by_user(self, session, products):
        ids = await _create_products(products, session)

        await CartRepository.add_to_cart(CartItemDTO(product_id=ids["bread"], quantity=1), session)
        await CartRepository.add_to_cart(CartItemDTO(product_id=ids["bread"], quantity=2, user_id=7), session)

        anonymous = await CartRepository.get_lines(None, session)
        user_cart = await CartRepository.get_lines(7, session)
        assert [line.quantity for line in anonymous] == ["1"]
        assert [line.quantity for line in user_cart] == ["2"]

        removed = await CartRepository.clear(7, session)
        assert removed == 1
        assert len(await CartRepository.get_lines(None, session)) == 1

    @pytest.mark.asyncio
    async def test_update_missing_line_returns_none(self, session):
        assert await CartRepository.update_quantity(999, None, "2", session) is None
        assert await CartRepository.remove(999, None, session) == 0


class TestCartService:

    @pytest.mark.asyncio
    async def test_add_defaults_and_merges(self, session, products):
        ids = await _create_products(products, session)

        await CartService.add_to_cart(ids["bread"], Decimal(1), None, session)
        await CartService.add_to_cart(ids["bread"], Decimal(2), None, session)

        lines = await CartService.get_cart(None, session)
        assert len(lines) == 1
        assert lines[0].quantity == "3"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [Decimal(0), Decimal(-1)])
    async def test_add_rejects_non_positive_quantity(self, session, products, quantity):
        ids = await _create_products(products, session)

        with pytest.raises(InvalidQuantityException):
            await CartService.add_to_cart(ids["bread"], quantity, None, session)
        assert await CartService.get_cart(None, session) == []

    @pytest.mark.asyncio
    async def test_add_rejects_fraction_of_piece(self, session, products):
        ids = await _create_products(products, session)

        with pytest.raises(InvalidQuantityException):
            await CartService.add_to_cart(ids["bread"], Decimal("0.5"), None, session)

    @pytest.mark.asyncio
    async def test_add_unknown_or_unavailable_product(self, session, products):
        ids = await _create_products(products, session)

        with pytest.raises(ProductNotFoundException):
            await CartService.add_to_cart(12345, Decimal(1), None, session)
        with pytest.raises(ProductNotFoundException):
            await CartService.add_to_cart(ids["old"], Decimal(1), None, session)

    @pytest.mark.asyncio
    async def test_update_quantity_and_remove_by_zero(self, session, products):
        ids = await _create_products(products, session)
        line = await CartService.add_to_cart(ids["tomato"], Decimal("1"), None, session)

        updated = await CartService.update_quantity(line.id, Decimal("2.5"), None, session)
        assert updated.quantity == "2.5"

        assert await CartService.update_quantity(line.id, Decimal(0), None, session) is None
        assert await CartService.get_cart(None, session) == []

    @pytest.mark.asyncio
    async def test_update_unknown_line(self, session):
        with pytest.raises(CartLineNotFoundException):
            await CartService.update_quantity(999, Decimal(1), None, session)

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, session, products):
        ids = await _create_products(products, session)
        line = await CartService.add_to_cart(ids["bread"], Decimal(1), None, session)

        await CartService.remove_cart_item(line.id, None, session)
        await CartService.remove_cart_item(line.id, None, session)

        assert await CartService.get_cart(None, session) == []

    @pytest.mark.asyncio
    async def test_lines_of_another_cart_are_not_found(self, session, products):
        ids = await _create_products(products, session)
        line = await CartService.add_to_cart(ids["bread"], Decimal(1), 5, session)

        with pytest.raises(CartLineNotFoundException):
            await CartService.update_quantity(line.id, Decimal(9), 6, session)
        with pytest.raises(CartLineNotFoundException):
            await CartService.update_quantity(line.id, Decimal(9), None, session)
        with pytest.raises(CartLineNotFoundException):
            await CartService.remove_cart_item(line.id, 6, session)

        lines = await CartService.get_cart(5, session)
        assert [cart_line.quantity for cart_line in lines] == ["1"]
