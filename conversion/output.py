"""
Output Builder

Turns engine models into the JSON responses returned by the API.
"""

from decimal import Decimal

from .models import Certificate, ConversionResult


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


class OutputBuilder:
    """Builds API response bodies."""

    def certificate(self, cert: Certificate) -> dict:
        """Priced certificate view returned by the check endpoint."""
        body = {
            "code": cert.code,
            "id": cert.external_id,
            "remainingBalance": cert.remaining_balance,
            "productId": cert.product_id,
            "costPerSession": to_money(cert.cost_per_session),
            "totalCost": to_money(cert.total_upgrade_cost),
            "adjustedBalance": cert.adjusted_balance,
            "pricingTier": {
                "name": cert.tier.name,
                "offseasonVSD": to_money(cert.tier.offseason_rate),
                "winterVSD": to_money(cert.tier.winter_rate),
            },
        }
        # Only present when the certificate holds non-offseason sessions too.
        if cert.other_remaining_balance > 0:
            body["otherRemainingBalance"] = cert.other_remaining_balance
        return {"isValid": True, "certificate": body}

    def conversion(self, result: ConversionResult) -> dict:
        return {
            "success": True,
            "certificate": {
                "code": result.code,
                "finalBalance": result.final_balance,
                "productId": result.product_id,
            },
        }

    def checkout(self, url: str) -> dict:
        return {"url": url}
