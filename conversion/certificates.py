"""
Certificate Validator

Reads a certificate from the credit service and attaches upgrade pricing.
"""

import logging

from .acuity import AcuityApiError, AcuityClient, AcuityConnectionError
from .calculators import BalanceCalculator, TierResolver
from .errors import (
    CertificateNotFound,
    ConversionError,
    NoRemainingSessions,
    UpstreamRejected,
    ValidationFailed,
    WrongCertificateType,
)
from .models import Certificate
from .validators import InputValidator

logger = logging.getLogger(__name__)

# Upstream error codes we classify; anything else is passed through as-is.
UPSTREAM_ERRORS = {
    "invalid_certificate": CertificateNotFound,
    "certificate_uses": NoRemainingSessions,
    "certificate_appointment_type": WrongCertificateType,
    "wrong_type": WrongCertificateType,
}


class CertificateValidator:
    """Produces a priced Certificate view, or raises a typed ConversionError."""

    def __init__(
        self,
        client: AcuityClient,
        offseason_type_id: str,
        resolver: TierResolver | None = None,
        calculator: BalanceCalculator | None = None,
        input_validator: InputValidator | None = None,
    ):
        self.client = client
        self.offseason_type_id = str(offseason_type_id)
        self.resolver = resolver or TierResolver()
        self.calculator = calculator or BalanceCalculator()
        self.input_validator = input_validator or InputValidator()

    def validate(self, code) -> Certificate:
        code = self.input_validator.normalize_code(code)

        try:
            data = self.client.check_certificate(code, self.offseason_type_id)
        except AcuityApiError as e:
            raise self._classify(e) from e
        except AcuityConnectionError as e:
            logger.error(f"Certificate lookup failed for {code}: {e}")
            raise ValidationFailed(str(e), retryable=True) from e

        try:
            return self._price(code, data)
        except ConversionError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Unexpected certificate payload for {code}: {data!r}")
            raise ValidationFailed(f"Unexpected certificate payload: {e}") from e

    def _price(self, code: str, data: dict) -> Certificate:
        counts = data.get("remainingCounts") or {}
        product_id = data.get("productID")

        remaining = int(counts.get(self.offseason_type_id, 0) or 0)
        other = sum(
            int(count or 0)
            for type_id, count in counts.items()
            if str(type_id) != self.offseason_type_id
        )

        tier = self.resolver.resolve(product_id, remaining)
        logger.info(f"Certificate {code}: product={product_id} tier={tier.name} remaining={remaining} other={other}")

        return Certificate(
            code=code,
            external_id=str(data["id"]),
            remaining_balance=remaining,
            product_id=product_id,
            tier=tier,
            cost_per_session=self.calculator.cost_per_session(tier),
            total_upgrade_cost=self.calculator.total_upgrade_cost(tier, remaining),
            adjusted_balance=self.calculator.adjusted_balance(tier, remaining),
            other_remaining_balance=other,
        )

    @staticmethod
    def _classify(error: AcuityApiError) -> ConversionError:
        if error.is_server_error:
            logger.error(f"Credit service unavailable: {error}")
            return ValidationFailed(error.message or "Credit service unavailable", retryable=True)

        error_class = UPSTREAM_ERRORS.get(error.error, UpstreamRejected)
        # Keep the upstream's own code and message.
        return error_class(error.message, error_code=error.error, context={"status": error.status})
