"""
Storefront API router.

Endpoints the web client talks to while browsing and filling the cart:
- Cart CRUD (/api/cart)
- Product listing (/api/products)
- Settings (/api/settings), e.g. the base delivery fee
- Server-side promotion evaluation (/api/promotions/evaluate)

Wire format is camelCase JSON (productId, addedAt, minAmount, ...).
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from models.cartItem import AddCartItemRequest, UpdateCartItemRequest, CartItemDTO, CartLineDTO
from models.cart_totals import CartTotalsDTO
from models.product import ProductDTO
from models.promotion_tier import PromotionResultDTO, PromotionProgressDTO
from models.base import CamelModel
from repositories.product import ProductRepository
from repositories.promotion_tier import PromotionTierRepository
from repositories.system_settings import SystemSettingsRepository
from services.cart import CartService
from services.cart_totals import CartTotalsService
from services.promotion import PromotionService
from web.dependencies import db_session, cart_owner

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api", tags=["api"])


class PromotionEvaluationDTO(CamelModel):
    """Response of /api/promotions/evaluate."""
    promotion: PromotionResultDTO
    totals: CartTotalsDTO
    progress: PromotionProgressDTO


# ============================================================================
# Cart
# ============================================================================

@api_router.get("/cart", response_model=list[CartLineDTO], response_model_by_alias=True)
async def get_cart(
    user_id: int | None = Depends(cart_owner),
    session: AsyncSession = Depends(db_session)
):
    """Full authoritative line list with embedded product snapshots."""
    return await CartService.get_cart(user_id, session)


@api_router.post(
    "/cart",
    response_model=CartItemDTO,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED
)
async def add_to_cart(
    payload: AddCartItemRequest,
    user_id: int | None = Depends(cart_owner),
    session: AsyncSession = Depends(db_session)
):
    """
    Add a product to the cart.

    Request Body:
        {"productId": 7, "quantity": "1.5"}

    Returns:
        201: Created or merged cart line
        400: Quantity not positive (or fractional for a counted unit)
        404: Product not found
    """
    return await CartService.add_to_cart(payload.product_id, payload.quantity, user_id, session)


@api_router.patch("/cart/{line_id}", response_model=CartItemDTO, response_model_by_alias=True)
async def update_cart_item(
    line_id: int,
    payload: UpdateCartItemRequest,
    user_id: int | None = Depends(cart_owner),
    session: AsyncSession = Depends(db_session)
):
    """
    Set the quantity of a cart line.

    Returns:
        200: Updated line
        204: Quantity <= 0, line removed
        404: Line not in the caller's cart
    """
    cart_item = await CartService.update_quantity(line_id, payload.quantity, user_id, session)
    if cart_item is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return cart_item


@api_router.delete("/cart/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_cart_item(
    line_id: int,
    user_id: int | None = Depends(cart_owner),
    session: AsyncSession = Depends(db_session)
):
    """
    Remove a line. Already removed lines answer 204, lines of another
    cart answer 404.
    """
    await CartService.remove_cart_item(line_id, user_id, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@api_router.delete("/cart", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    user_id: int | None = Depends(cart_owner),
    session: AsyncSession = Depends(db_session)
):
    await CartService.clear_cart(user_id, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Products
# ============================================================================

@api_router.get("/products", response_model=list[ProductDTO], response_model_by_alias=True)
async def get_products(
    category_id: int | None = Query(default=None, alias="categoryId"),
    session: AsyncSession = Depends(db_session)
):
    return await ProductRepository.get_available(session, category_id=category_id)


@api_router.get("/products/{product_id}", response_model=ProductDTO, response_model_by_alias=True)
async def get_product(product_id: int, session: AsyncSession = Depends(db_session)):
    product = await ProductRepository.get_by_id(product_id, session)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Product {product_id} not found")
    return product


# ============================================================================
# Settings & promotions (read side)
# ============================================================================

@api_router.get("/settings")
async def get_settings(session: AsyncSession = Depends(db_session)):
    """
    All settings as {key: typed value}.

    delivery_fee is always present (falls back to the configured default).
    """
    settings = await SystemSettingsRepository.get_typed_map(session)
    settings["delivery_fee"] = await SystemSettingsRepository.get_delivery_fee(session)
    return settings


@api_router.get(
    "/promotions/evaluate",
    response_model=PromotionEvaluationDTO,
    response_model_by_alias=True
)
async def evaluate_promotions(
    subtotal: Decimal = Query(..., ge=0),
    session: AsyncSession = Depends(db_session)
):
    """
    Evaluate promotion tiers for a subtotal, same rules as the client.

    Example:
        GET /api/promotions/evaluate?subtotal=60000
    """
    tiers = await PromotionTierRepository.get_all(session)
    base_fee = await SystemSettingsRepository.get_delivery_fee(session)
    promotion = PromotionService.evaluate(subtotal, tiers)

    totals = CartTotalsService.compose_subtotal(subtotal, base_fee, promotion)
    logger.debug(f"[Promotions] Evaluated subtotal {subtotal}: total {totals.total}")
    return PromotionEvaluationDTO(
        promotion=promotion,
        totals=totals,
        progress=PromotionService.build_progress(subtotal, tiers)
    )
