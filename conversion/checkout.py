"""
Checkout Bridge

Opens a Stripe Checkout session for the paid upgrade path. The conversion
itself runs later, once the customer comes back from a completed payment.
"""

import logging
from urllib.parse import quote

import stripe

from .errors import PriceNotFound, UpstreamUnavailable
from .models import PricingTier

logger = logging.getLogger(__name__)

LOOKUP_KEY_PREFIX = "OFFSEASON_UPGRADE_TIER_"


def lookup_key(tier: PricingTier) -> str:
    return f"{LOOKUP_KEY_PREFIX}{tier.number}"


class CheckoutBridge:
    """Resolves the upgrade price for a tier and creates the payment session."""

    def __init__(self, api_key: str, base_url: str):
        stripe.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def find_price_id(self, tier: PricingTier) -> str:
        """Return the single active price for the tier's lookup key."""
        key = lookup_key(tier)
        try:
            prices = stripe.Price.search(query=f"active:'true' AND lookup_key:'{key}'")
        except stripe.StripeError as e:
            logger.error(f"Price lookup failed for {key}: {e}")
            raise UpstreamUnavailable(f"Price lookup failed: {e}", error_code="checkout_failed", retryable=True) from e

        matches = list(prices.data)
        if len(matches) != 1:
            raise PriceNotFound(
                f"Expected one active price for lookup key {key}, found {len(matches)}",
                context={"lookupKey": key},
            )
        return matches[0].id

    def create_session(self, tier: PricingTier, code: str, email: str) -> str:
        """Create a Checkout session and return its hosted URL."""
        price_id = self.find_price_id(tier)
        certificate = quote(code)

        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=f"{self.base_url}/success?session_id={{CHECKOUT_SESSION_ID}}&certificate={certificate}",
                cancel_url=f"{self.base_url}?canceled=true&certificate={certificate}",
                customer_email=email,
                metadata={"certificateCode": code, "tier": tier.number},
            )
        except stripe.StripeError as e:
            logger.error(f"Checkout session creation failed for {code}: {e}")
            raise UpstreamUnavailable(
                f"Failed to create checkout session: {e}", error_code="checkout_failed"
            ) from e

        logger.info(f"Checkout session {session.id} created for {code} ({tier.name})")
        return session.url
