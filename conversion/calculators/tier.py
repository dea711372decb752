"""
Tier Resolver

Maps an offseason product id to the pricing tier used for its upgrade.
"""

import logging

from ..errors import NoRemainingSessions, TierResolutionFailure
from ..models import PricingTier
from ..tiers import DEFAULT_TIER_NAME, PRICING_TIERS

logger = logging.getLogger(__name__)


def check_disjoint(tiers) -> None:
    """Raise ValueError if any product id belongs to more than one tier."""
    seen = {}
    for tier in tiers:
        for product_id in tier.product_ids:
            if product_id in seen:
                raise ValueError(
                    f"Product {product_id} appears in both {seen[product_id]} and {tier.name}"
                )
            seen[product_id] = tier.name


class TierResolver:
    """Resolves product ids against an ordered, disjoint tier table."""

    def __init__(self, tiers=PRICING_TIERS, default_tier_name: str = DEFAULT_TIER_NAME):
        check_disjoint(tiers)
        self.tiers = tuple(tiers)
        self.default_tier = self.tier_by_name(default_tier_name)

    def resolve(self, product_id, remaining_balance: int) -> PricingTier:
        """
        Find the tier for a product.

        An unknown product still holding sessions falls back to the default
        tier. An unknown product with nothing left raises NoRemainingSessions.
        """
        for tier in self.tiers:
            if product_id in tier:
                return tier

        if remaining_balance > 0:
            logger.warning(
                f"No tier for product {product_id}; defaulting to {self.default_tier.name} "
                f"({remaining_balance} sessions remaining)"
            )
            return self.default_tier

        raise NoRemainingSessions("No remaining sessions found for certificate")

    def tier_by_name(self, name) -> PricingTier:
        """Look a tier up by name ("TIER_2") or number ("2")."""
        key = str(name).strip().upper()
        for tier in self.tiers:
            if key in (tier.name, tier.number):
                return tier
        raise TierResolutionFailure(f"Unknown pricing tier: {name}")
