import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit
from enums.product_unit import ProductUnit
from exceptions.cart import CartLineNotFoundException, InvalidQuantityException
from exceptions.product import ProductNotFoundException
from models.cartItem import CartItemDTO, CartLineDTO
from repositories.cart import CartRepository
from repositories.product import ProductRepository
from utils.quantity import require_positive

logger = logging.getLogger(__name__)


class CartService:
    """
    Server side of the cart: the authoritative store the client cart
    reconciles against.
    """

    @staticmethod
    async def get_cart(user_id: int | None, session: AsyncSession | Session) -> list[CartLineDTO]:
        return await CartRepository.get_lines(user_id, session)

    @staticmethod
    async def add_to_cart(
        product_id: int,
        quantity: Decimal,
        user_id: int | None,
        session: AsyncSession | Session
    ) -> CartItemDTO:
        """
        Adds a product to the cart, merging with an existing line.

        Raises:
            InvalidQuantityException: quantity <= 0, or fractional for a counted unit
            ProductNotFoundException: product does not exist or is unavailable
        """
        quantity = require_positive(quantity)

        product = await ProductRepository.get_by_id(product_id, session)
        if product is None or not product.is_available:
            raise ProductNotFoundException(product_id)

        CartService._check_unit(product.unit, quantity)

        cart_item = await CartRepository.add_to_cart(
            CartItemDTO(product_id=product_id, quantity=quantity, user_id=user_id),
            session
        )
        await session_commit(session)
        logger.info(f"[Cart] Product {product_id} x{quantity} added, line {cart_item.id} now {cart_item.quantity}")
        return cart_item

    @staticmethod
    async def update_quantity(
        line_id: int,
        quantity: Decimal,
        user_id: int | None,
        session: AsyncSession | Session
    ) -> CartItemDTO | None:
        """
        Set the quantity of a line.

        A quantity <= 0 removes the line, in which case None is returned.

        Raises:
            CartLineNotFoundException: line is not in the caller's cart
        """
        existing = await CartRepository.get_by_id(line_id, user_id, session)
        if existing is None:
            raise CartLineNotFoundException(line_id)

        if quantity <= 0:
            await CartRepository.remove(line_id, user_id, session)
            await session_commit(session)
            logger.info(f"[Cart] Line {line_id} removed by quantity {quantity}")
            return None

        quantity = require_positive(quantity)
        product = await ProductRepository.get_by_id(existing.product_id, session)
        if product is not None:
            CartService._check_unit(product.unit, quantity)

        cart_item = await CartRepository.update_quantity(line_id, user_id, quantity, session)
        await session_commit(session)
        logger.info(f"[Cart] Line {line_id} quantity set to {cart_item.quantity}")
        return cart_item

    @staticmethod
    async def remove_cart_item(line_id: int, user_id: int | None, session: AsyncSession | Session) -> None:
        """
        Remove a line from the caller's cart.

        Removing a line that is already gone is not an error: the client
        state converges either way.

        Raises:
            CartLineNotFoundException: line belongs to another cart
        """
        removed = await CartRepository.remove(line_id, user_id, session)
        if removed == 0:
            if await CartRepository.exists(line_id, session):
                raise CartLineNotFoundException(line_id)
            logger.debug(f"[Cart] Line {line_id} already removed")
            return
        await session_commit(session)
        logger.info(f"[Cart] Line {line_id} removed")

    @staticmethod
    async def clear_cart(user_id: int | None, session: AsyncSession | Session) -> None:
        removed = await CartRepository.clear(user_id, session)
        await session_commit(session)
        logger.info(f"[Cart] Cart cleared ({removed} lines)")

    @staticmethod
    def _check_unit(unit: str, quantity: Decimal) -> None:
        try:
            product_unit = ProductUnit.from_string(unit)
        except ValueError:
            # Unknown units are sold like pieces
            product_unit = ProductUnit.PIECE
        if not product_unit.allows_fraction and quantity != quantity.to_integral_value():
            raise InvalidQuantityException(quantity, f"'{product_unit.value}' is sold in whole units")
