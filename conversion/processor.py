"""
Certificate Processor - Engine Boundary

Wires the validator, coordinator and checkout bridge together and exposes
the operations the HTTP entry points call:

1. check    - price a certificate
2. checkout - open a payment session for the upgrade path
3. convert  - replace the certificate (upgrade after payment, or free adjustment)
4. replay   - operator remediation for a partial failure
"""

from typing import Any, Dict

from .acuity import AcuityClient
from .calculators import BalanceCalculator, TierResolver
from .certificates import CertificateValidator
from .checkout import CheckoutBridge
from .config import Settings
from .coordinator import CodeLeases, ConversionCoordinator
from .errors import ValidationError
from .models import ConversionRequest, ReplacementRecord
from .output import OutputBuilder
from .validators import InputValidator


class CertificateProcessor:
    """Main entry point used by the Flask app and the Lambda handler."""

    def __init__(
        self,
        settings: Settings,
        client: AcuityClient | None = None,
        checkout: CheckoutBridge | None = None,
    ):
        self.settings = settings
        self.client = client or AcuityClient(settings)
        self.input_validator = InputValidator()
        self.resolver = TierResolver()
        self.calculator = BalanceCalculator()
        self.validator = CertificateValidator(
            self.client,
            settings.offseason_type_id,
            resolver=self.resolver,
            calculator=self.calculator,
            input_validator=self.input_validator,
        )
        self.coordinator = ConversionCoordinator(
            self.client,
            settings.winter_product_ids,
            settings.winter_type_id,
            leases=CodeLeases(settings.lease_timeout),
            calculator=self.calculator,
        )
        self.checkout_bridge = checkout or CheckoutBridge(settings.stripe_secret_key, settings.base_url)
        self.output_builder = OutputBuilder()

    def check(self, code) -> Dict[str, Any]:
        certificate = self.validator.validate(code)
        return self.output_builder.certificate(certificate)

    def checkout(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Open a checkout session.

        The tier may be given directly ("2" / "TIER_2") or derived from the
        certificate's productId, falling back to the default tier.
        """
        code = self.input_validator.normalize_code(data.get("certificateCode"))
        email = self.input_validator.validate_email(data.get("email"))

        if data.get("tier") not in (None, ""):
            tier = self.resolver.tier_by_name(data["tier"])
        elif data.get("productId") is not None:
            tier = self.resolver.resolve(_as_int(data["productId"], "productId"), remaining_balance=1)
        else:
            raise ValidationError("tier or productId is required")

        url = self.checkout_bridge.create_session(tier, code, email)
        return self.output_builder.checkout(url)

    def convert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            request = ConversionRequest.from_dict(data)
        except KeyError as e:
            raise ValidationError(f"Missing field: {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid conversion request: {e}") from e

        self.input_validator.validate_request(request)
        result = self.coordinator.convert(request)
        return self.output_builder.conversion(result)

    def replay(self, remediation: Dict[str, Any]) -> Dict[str, Any]:
        """Retry the create step from a logged partial-failure payload."""
        try:
            record = ReplacementRecord.from_remediation(remediation)
        except KeyError as e:
            raise ValidationError(f"Missing field: {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid remediation payload: {e}") from e

        result = self.coordinator.replay(record)
        return self.output_builder.conversion(result)


def _as_int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer, got: {value!r}") from e
