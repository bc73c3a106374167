"""Delivery fee and cart discount computation.

Pure functions over a ``StoreConfigDocument`` snapshot: used for the
pre-checkout estimate (``POST /storeconfig/compute``) and again, with the
same inputs, when an order is placed.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from services.storefront_service.errors import StoreConfigError
from services.storefront_service.schemas import (
    AppliedDiscountRule,
    DiscountTier,
    FlatDeliveryFee,
    FlatDiscountTier,
    PerKmDeliveryFee,
    PercentageDiscountTier,
    StoreConfigDocument,
)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingResult:
    cart_value: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_rule: Optional[DiscountTier] = None

    def applied_rule_summary(self) -> Optional[AppliedDiscountRule]:
        if self.applied_rule is None:
            return None
        return AppliedDiscountRule(
            discount_type=self.applied_rule.discount_type,
            value=self.applied_rule.value,
            min_cart_value=self.applied_rule.min_cart_value,
            priority=self.applied_rule.priority,
            max_discount_amount=self.applied_rule.max_discount_amount,
        )


def calculate_delivery_fee(policy, distance_km: Decimal) -> Decimal:
    """Flat policies charge ``base_fee``; per-km ones add ``rate * distance_km``."""
    if isinstance(policy, FlatDeliveryFee):
        return policy.base_fee
    if isinstance(policy, PerKmDeliveryFee):
        return policy.base_fee + policy.rate * Decimal(distance_km)
    raise StoreConfigError(f"Unknown delivery fee policy: {policy!r}")


def select_discount_tier(
    tiers: Sequence[DiscountTier], cart_value: Decimal
) -> Optional[DiscountTier]:
    """Pick the applicable tier with the highest priority, then the highest value.

    The ordering never depends on the position of a tier in ``tiers``: tiers
    equal on priority and value fall back to the larger resulting discount,
    then the higher threshold, then the discount type name.
    """
    applicable = [tier for tier in tiers if tier.min_cart_value <= cart_value]
    if not applicable:
        return None
    return max(
        applicable,
        key=lambda tier: (
            tier.priority,
            tier.value,
            calculate_discount(tier, cart_value),
            tier.min_cart_value,
            tier.discount_type,
        ),
    )


def calculate_discount(tier: Optional[DiscountTier], cart_value: Decimal) -> Decimal:
    if tier is None:
        return ZERO

    if isinstance(tier, FlatDiscountTier):
        amount = tier.value
    elif isinstance(tier, PercentageDiscountTier):
        amount = Decimal(cart_value) * tier.value / 100
    else:
        raise StoreConfigError(f"Unknown discount tier: {tier!r}")

    # A zero cap is treated as "no cap"
    if tier.max_discount_amount:
        amount = min(amount, tier.max_discount_amount)
    return max(ZERO, amount)


def compute_totals(
    cart_value: Decimal,
    distance_km: Decimal,
    config: StoreConfigDocument,
) -> PricingResult:
    """Compute delivery fee, discount and the amount payable for a cart value.

    Fee and discount are rounded to cents first so that
    ``final_amount == max(0, cart_value - discount_amount + delivery_fee)``
    holds exactly on the values that get stored.
    """
    cart_value = Decimal(cart_value)
    distance_km = Decimal(distance_km)
    if distance_km < 0:
        raise ValueError("distance_km must be non-negative")

    delivery_fee = to_money(calculate_delivery_fee(config.delivery_fee, distance_km))
    tier = select_discount_tier(config.cart_discounts, cart_value)
    discount_amount = to_money(calculate_discount(tier, cart_value))
    final_amount = max(ZERO, cart_value - discount_amount + delivery_fee)

    return PricingResult(
        cart_value=cart_value,
        delivery_fee=delivery_fee,
        discount_amount=discount_amount,
        final_amount=final_amount,
        applied_rule=tier,
    )
