import logging
from decimal import Decimal
from typing import Iterable

from enums.reward_type import RewardType
from utils.localizator import Localizator
from models.promotion_tier import (
    PromotionTierDTO,
    PromotionResultDTO,
    ProgressStepDTO,
    PromotionProgressDTO,
)

logger = logging.getLogger(__name__)

def _to_amount(value) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        amount = Decimal(value)
    # Callers never pass negative subtotals, clamp anyway
    return max(amount, Decimal(0))


class PromotionService:
    """Service for cart-total promotion tiers (free delivery, fixed discounts)."""

    @staticmethod
    def evaluate(
        subtotal,
        tiers: Iterable[PromotionTierDTO],
        lang: str | None = None
    ) -> PromotionResultDTO:
        """
        Calculate the reward a cart subtotal qualifies for.

        Algorithm:
        1. Ignore disabled tiers. No enabled tiers means no reward.
        2. Free delivery is granted once the subtotal reaches the threshold of
           ANY enabled free-delivery tier, so it never regresses when a higher
           tier is reached.
        3. Discount is the largest reward_value among the enabled discount
           tiers whose threshold is reached. Discounts are never summed.
        4. current_tier is the highest threshold reached, next_tier the lowest
           threshold not reached yet.

        Example with tiers [15000→free delivery, 20000→1000 off, 50000→3000 off]:
            - Subtotal 60000: free delivery AND 3000 off (not 4000)
            - Subtotal 17000: free delivery, no discount, 3000 to next tier

        Args:
            subtotal: Cart subtotal (Decimal, int or float)
            tiers: Promotion tiers as configured, possibly empty or disabled
            lang: Language of current_tier_label (default: config.STORE_LANGUAGE)

        Returns:
            PromotionResultDTO
        """
        amount = _to_amount(subtotal)
        enabled = [tier for tier in tiers if tier.is_enabled]

        if not enabled:
            return PromotionResultDTO()

        # Stable sort: tiers with equal thresholds keep their configured order
        by_threshold = sorted(enabled, key=lambda t: t.min_amount)
        reached = [tier for tier in by_threshold if tier.min_amount <= amount]
        not_reached = [tier for tier in by_threshold if tier.min_amount > amount]

        free_delivery = any(tier.reward_type == RewardType.FREE_DELIVERY for tier in reached)

        discount_tiers = [tier for tier in reached if tier.reward_type == RewardType.DISCOUNT]
        discount_amount = 0
        if discount_tiers:
            # max() keeps the first of equal values, i.e. the lowest threshold
            discount_amount = max(discount_tiers, key=lambda t: t.reward_value).reward_value

        current_tier = reached[-1] if reached else None
        next_tier = not_reached[0] if not_reached else None
        amount_to_next = Decimal(0)
        if next_tier is not None:
            amount_to_next = max(Decimal(next_tier.min_amount) - amount, Decimal(0))

        return PromotionResultDTO(
            free_delivery=free_delivery,
            discount_amount=discount_amount,
            current_tier=current_tier,
            next_tier=next_tier,
            amount_to_next=amount_to_next,
            current_tier_label=PromotionService.reward_label(free_delivery, discount_amount, lang)
        )

    @staticmethod
    def reward_label(free_delivery: bool, discount_amount: int, lang: str | None = None) -> str | None:
        """
        Short label for the reward currently unlocked.

        Example output:
            "Free delivery", "Discount 2,000", "Free delivery + Discount 2,000"
        """
        parts = []
        if free_delivery:
            parts.append(Localizator.get_text("label_free_delivery", lang=lang))
        if discount_amount > 0:
            parts.append(Localizator.get_text("label_discount", lang=lang).format(amount=f"{discount_amount:,}"))
        return " + ".join(parts) if parts else None

    @staticmethod
    def tier_label(tier: PromotionTierDTO, lang: str | None = None) -> str:
        if tier.reward_type == RewardType.FREE_DELIVERY:
            return Localizator.get_text("label_free_delivery", lang=lang)
        return Localizator.get_text("label_discount", lang=lang).format(amount=f"{tier.reward_value:,}")

    @staticmethod
    def next_reward_hint(result: PromotionResultDTO, lang: str | None = None) -> str | None:
        """
        Upsell hint for the next tier, e.g. "Add 3,000 IQD more to unlock: Discount 1,000".

        Returns None when every tier is already reached.
        """
        if result.next_tier is None:
            return None
        return Localizator.get_text("cart_amount_to_next", lang=lang).format(
            amount=Localizator.format_amount(result.amount_to_next, lang=lang),
            reward=PromotionService.tier_label(result.next_tier, lang)
        )

    @staticmethod
    def build_progress(
        subtotal,
        tiers: Iterable[PromotionTierDTO],
        lang: str | None = None
    ) -> PromotionProgressDTO:
        """
        Build the promotion progress bar shown above the cart.

        Steps are a "Start" step at 0 followed by every enabled tier in
        tier_rank order. The bar fills evenly per step: reaching step i of n
        shows i/n, and the span between two steps fills linearly with the
        subtotal.

        Example with steps [0, 15000, 35000, 50000] and subtotal 25000:
            - Current step 1 (15000), halfway to 35000
            - Progress = 1/3 + 0.5 * 1/3 = 50%
        """
        amount = _to_amount(subtotal)
        enabled = sorted((tier for tier in tiers if tier.is_enabled), key=lambda t: t.tier_rank)

        steps = [ProgressStepDTO(id=0, label=Localizator.get_text("label_start", lang=lang), amount=0)]
        steps.extend(
            ProgressStepDTO(id=tier.id or index, label=PromotionService.tier_label(tier, lang), amount=tier.min_amount)
            for index, tier in enumerate(enabled, start=1)
        )

        step_index = 0
        for i in range(len(steps) - 1, -1, -1):
            if amount >= steps[i].amount:
                step_index = i
                break

        if len(steps) <= 1:
            progress = 0.0
        elif step_index >= len(steps) - 1:
            progress = 100.0
        else:
            current_step = steps[step_index]
            next_step = steps[step_index + 1]
            step_range = next_step.amount - current_step.amount
            step_progress = float(amount - current_step.amount) / step_range if step_range > 0 else 0.0
            segment = 100.0 / (len(steps) - 1)
            progress = min(step_index * segment + segment * step_progress, 100.0)

        logger.debug(f"[Promotion] Progress for {amount}: step {step_index}/{len(steps) - 1}, {progress:.1f}%")
        return PromotionProgressDTO(
            steps=steps,
            current_step_index=step_index,
            progress_percent=round(progress, 2)
        )
