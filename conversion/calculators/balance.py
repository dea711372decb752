"""
Balance Calculator

Upgrade cost and reduced-balance arithmetic. No I/O.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..models import ConversionRequest, ConversionType, PricingTier


def round_sessions(value: Decimal) -> int:
    """Round to a whole session count, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class BalanceCalculator:
    """Prices an offseason balance against its tier."""

    def cost_per_session(self, tier: PricingTier) -> Decimal:
        return tier.winter_rate - tier.offseason_rate

    def total_upgrade_cost(self, tier: PricingTier, remaining_balance: int) -> Decimal:
        return self.cost_per_session(tier) * remaining_balance

    def adjusted_balance(self, tier: PricingTier, remaining_balance: int) -> int:
        """
        Winter sessions offered for free in exchange for the offseason balance.

        Scales the balance by offseason/winter value. A single remaining
        session is never kept for free: it always adjusts to zero.
        """
        if remaining_balance == 1:
            return 0
        value = tier.offseason_rate * remaining_balance / tier.winter_rate
        return round_sessions(value)

    def final_balance(self, request: ConversionRequest) -> int:
        """Winter sessions the replacement certificate must hold."""
        if request.conversion_type == ConversionType.UPGRADE:
            return request.current_balance + request.other_remaining_balance
        return request.adjusted_balance + request.other_remaining_balance
