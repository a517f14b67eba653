from datetime import datetime, timezone

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.cartItem import CartItem, CartItemDTO, CartLineDTO
from models.product import Product, ProductDTO
from utils.quantity import add_quantities, format_quantity


def _owner_clause(user_id: int | None):
    # Anonymous carts are the rows without a user
    if user_id is None:
        return CartItem.user_id.is_(None)
    return CartItem.user_id == user_id


class CartRepository:
    @staticmethod
    async def get_lines(user_id: int | None, session: AsyncSession | Session) -> list[CartLineDTO]:
        """
        Get all cart lines of one cart with the product snapshot embedded.

        Lines whose product was deleted are dropped by the inner join.
        Ordered by line id so the UI keeps a stable order across reloads.
        """
        stmt = (
            select(CartItem, Product)
            .join(Product, CartItem.product_id == Product.id)
            .where(_owner_clause(user_id))
            .order_by(CartItem.id.asc())
        )
        result = await session_execute(stmt, session)
        lines = []
        for cart_item, product in result.all():
            line = CartLineDTO.model_validate(cart_item, from_attributes=True)
            line.product = ProductDTO.model_validate(product, from_attributes=True)
            lines.append(line)
        return lines

    @staticmethod
    async def get_by_id(
        line_id: int,
        user_id: int | None,
        session: AsyncSession | Session
    ) -> CartItemDTO | None:
        """Get a line of one cart. Lines of other carts are not found."""
        stmt = select(CartItem).where(CartItem.id == line_id, _owner_clause(user_id))
        result = await session_execute(stmt, session)
        cart_item = result.scalar()
        if cart_item is None:
            return None
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def get_by_product(
        product_id: int,
        user_id: int | None,
        session: AsyncSession | Session
    ) -> CartItemDTO | None:
        stmt = select(CartItem).where(CartItem.product_id == product_id, _owner_clause(user_id))
        result = await session_execute(stmt, session)
        cart_item = result.scalar()
        if cart_item is None:
            return None
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def add_to_cart(cart_item: CartItemDTO, session: AsyncSession | Session) -> CartItemDTO:
        """
        Add a product to the cart.

        If the cart already has a line for the product, its quantity is
        increased by the requested amount (decimal arithmetic on the stored
        string) instead of creating a duplicate line.
        """
        existing = await CartRepository.get_by_product(cart_item.product_id, cart_item.user_id, session)

        if existing is not None:
            new_quantity = add_quantities(existing.quantity, cart_item.quantity)
            stmt = update(CartItem).where(CartItem.id == existing.id).values(quantity=new_quantity)
            await session_execute(stmt, session)
            return existing.model_copy(update={"quantity": new_quantity})

        new_item = CartItem(
            user_id=cart_item.user_id,
            product_id=cart_item.product_id,
            quantity=format_quantity(cart_item.quantity),
            added_at=datetime.now(timezone.utc).isoformat()
        )
        session.add(new_item)
        await session_flush(session)
        return CartItemDTO.model_validate(new_item, from_attributes=True)

    @staticmethod
    async def update_quantity(
        line_id: int,
        user_id: int | None,
        quantity,
        session: AsyncSession | Session
    ) -> CartItemDTO | None:
        """Set the quantity of a line. Returns None if the cart has no such line."""
        stmt = (
            update(CartItem)
            .where(CartItem.id == line_id, _owner_clause(user_id))
            .values(quantity=format_quantity(quantity))
        )
        result = await session_execute(stmt, session)
        if result.rowcount == 0:
            return None
        return await CartRepository.get_by_id(line_id, user_id, session)

    @staticmethod
    async def remove(line_id: int, user_id: int | None, session: AsyncSession | Session) -> int:
        stmt = delete(CartItem).where(CartItem.id == line_id, _owner_clause(user_id))
        result = await session_execute(stmt, session)
        return result.rowcount

    @staticmethod
    async def exists(line_id: int, session: AsyncSession | Session) -> bool:
        """Whether a line exists in any cart."""
        stmt = select(CartItem.id).where(CartItem.id == line_id)
        result = await session_execute(stmt, session)
        return result.scalar() is not None

    @staticmethod
    async def clear(user_id: int | None, session: AsyncSession | Session) -> int:
        stmt = delete(CartItem).where(_owner_clause(user_id))
        result = await session_execute(stmt, session)
        return result.rowcount
