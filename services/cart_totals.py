from decimal import Decimal
from typing import Iterable

from models.cart_totals import CartTotalsDTO
from models.cartItem import CartLineDTO
from models.promotion_tier import PromotionTierDTO, PromotionResultDTO
from services.promotion import PromotionService
from utils.quantity import parse_quantity


class CartTotalsService:
    """
    Derives subtotal, delivery fee, discount and grand total from cart lines.

    Pure computation: no network, no database. Recompute whenever the cart
    lines or the tier table change.
    """

    @staticmethod
    def calculate_subtotal(lines: Iterable[CartLineDTO]) -> Decimal:
        """
        Sum of price × quantity over all lines.

        Both price and quantity are parsed as Decimal so fractional units
        (1.5 kg) are exact. Lines without a product snapshot or price
        contribute nothing.
        """
        subtotal = Decimal(0)
        for line in lines:
            if line.product is None or line.product.price is None:
                continue
            subtotal += Decimal(line.product.price) * parse_quantity(line.quantity)
        return subtotal

    @staticmethod
    def compose(
        lines: Iterable[CartLineDTO],
        base_delivery_fee,
        promotion_result: PromotionResultDTO
    ) -> CartTotalsDTO:
        """
        Combine the subtotal with the delivery fee and the promotion reward.

        total = max(0, subtotal + delivery_fee - discount), so a discount
        larger than the order never produces a negative total.
        """
        return CartTotalsService.compose_subtotal(
            CartTotalsService.calculate_subtotal(lines),
            base_delivery_fee,
            promotion_result
        )

    @staticmethod
    def compose_subtotal(
        subtotal: Decimal,
        base_delivery_fee,
        promotion_result: PromotionResultDTO
    ) -> CartTotalsDTO:
        """Same as compose() for an already known subtotal."""
        subtotal = Decimal(subtotal)
        base_fee = Decimal(base_delivery_fee)
        delivery_fee = Decimal(0) if promotion_result.free_delivery else base_fee
        discount = Decimal(promotion_result.discount_amount)
        total = max(Decimal(0), subtotal + delivery_fee - discount)

        return CartTotalsDTO(
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            base_delivery_fee=base_fee,
            discount=discount,
            total=total,
            has_free_delivery=promotion_result.free_delivery,
            has_discount=discount > 0,
            current_tier_label=promotion_result.current_tier_label
        )

    @staticmethod
    def calculate(
        lines: Iterable[CartLineDTO],
        tiers: Iterable[PromotionTierDTO],
        base_delivery_fee
    ) -> CartTotalsDTO:
        """Evaluate promotions for the cart subtotal and compose the totals."""
        lines = list(lines)
        subtotal = CartTotalsService.calculate_subtotal(lines)
        promotion_result = PromotionService.evaluate(subtotal, tiers)
        return CartTotalsService.compose(lines, base_delivery_fee, promotion_result)
