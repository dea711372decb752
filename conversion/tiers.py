"""
Pricing Tier Table

Offseason products grouped by the rate pair used to price their upgrade.
Tiers are checked in order; product ids must not appear in more than one tier.
"""

import json
from decimal import Decimal

from .models import PricingTier

PRICING_TIERS = (
    PricingTier(
        name="TIER_1",
        product_ids=frozenset({
            1268093, 1728941, 1728943, 1728945, 1728946, 1728947, 1742285, 1742301, 1742312,
        }),
        offseason_rate=Decimal("110"),
        winter_rate=Decimal("165"),
    ),
    PricingTier(
        name="TIER_2",
        product_ids=frozenset({
            1268102, 1268103, 1750655, 1742289, 1742291, 1742304, 1742306, 1742313, 1742315,
            1742361, 1742362,
        }),
        offseason_rate=Decimal("100"),
        winter_rate=Decimal("145"),
    ),
    PricingTier(
        name="TIER_3",
        product_ids=frozenset({
            1268104, 1268105, 1742293, 1742298, 1742307, 1742310, 1742317, 1742321, 1742365,
            1742368, 1742370, 1742372, 1742374, 1742375,
        }),
        offseason_rate=Decimal("90"),
        winter_rate=Decimal("130"),
    ),
)

# Used when a certificate with sessions left carries an unknown product id.
DEFAULT_TIER_NAME = "TIER_1"


def parse_product_mapping(raw: str) -> dict[int, int]:
    """
    Parse the winter product table: session count -> product id.

    Accepts a JSON object ({"1": 1800001, "2": 1800002}). Raises ValueError
    if the value is not a mapping of positive counts to product ids.
    """
    data = json.loads(raw)
    if not isinstance(data, dict) or not data:
        raise ValueError("winter product mapping must be a non-empty JSON object")

    mapping = {}
    for count, product_id in data.items():
        sessions = int(count)
        if sessions < 1:
            raise ValueError(f"session count must be at least 1, got: {count}")
        mapping[sessions] = int(product_id)
    return mapping
