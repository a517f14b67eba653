from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.product import Product, ProductDTO


class ProductRepository:

    @staticmethod
    async def get_by_id(product_id: int, session: Session | AsyncSession) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        result = await session_execute(stmt, session)
        product = result.scalar()
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_available(
        session: Session | AsyncSession,
        category_id: int | None = None
    ) -> list[ProductDTO]:
        """
        Get products that can be added to a cart.

        Ordered by display_order first (NULLs last), then by name, which is
        the order the storefront grid shows them in.
        """
        stmt = select(Product).where(Product.is_available == True)
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        stmt = stmt.order_by(Product.display_order.is_(None), Product.display_order, Product.name)
        result = await session_execute(stmt, session)
        return [ProductDTO.model_validate(p, from_attributes=True) for p in result.scalars().all()]

    @staticmethod
    async def create(product_dto: ProductDTO, session: Session | AsyncSession) -> int:
        product = Product(**product_dto.model_dump(exclude={"id"}))
        session.add(product)
        await session_flush(session)
        return product.id
