"""
Error Taxonomy for the Certificate Conversion Engine

Every failure the engine reports is a ConversionError carrying a stable
error code, a human-readable message and the HTTP status the entry points
answer with. Client-correctable problems map to 4xx, operational ones to 5xx.
"""


class ConversionError(Exception):
    """Base class for all engine errors."""

    error_code = "conversion_failed"
    http_status = 500
    retryable = False

    def __init__(self, message: str, error_code: str | None = None, context: dict | None = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict:
        return {"error": self.error_code, "errorMessage": self.message}


class ConfigurationError(ConversionError):
    """Raised at startup when required settings are missing or malformed."""

    error_code = "configuration_error"


# =============================================================================
# CLIENT-CORRECTABLE (4xx)
# =============================================================================


class ValidationError(ConversionError):
    """Malformed input (bad code, email, balances, conversion type)."""

    error_code = "validation_error"
    http_status = 400


class CertificateNotFound(ConversionError):
    error_code = "invalid_certificate"
    http_status = 400


class NoRemainingSessions(ConversionError):
    error_code = "no_remaining_sessions"
    http_status = 400


class WrongCertificateType(ConversionError):
    error_code = "wrong_certificate_type"
    http_status = 400


class UpstreamRejected(ConversionError):
    """The credit service refused the request with a code we don't classify."""

    error_code = "upstream_rejected"
    http_status = 400


class TierResolutionFailure(ConversionError):
    error_code = "tier_not_found"
    http_status = 400


class InvalidBalance(ConversionError):
    """No winter product exists for the computed final balance."""

    error_code = "invalid_balance"
    http_status = 400


class ConversionInProgress(ConversionError):
    """Another conversion holds the lease for this certificate code."""

    error_code = "conversion_in_progress"
    http_status = 409


# =============================================================================
# OPERATIONAL (5xx)
# =============================================================================


class PriceNotFound(ConversionError):
    error_code = "price_not_found"
    http_status = 500


class UpstreamUnavailable(ConversionError):
    """Transport failure or 5xx from an upstream service."""

    error_code = "upstream_unavailable"
    http_status = 502

    def __init__(self, message: str, error_code: str | None = None, context: dict | None = None,
                 retryable: bool = False):
        super().__init__(message, error_code=error_code, context=context)
        self.retryable = retryable


class ValidationFailed(UpstreamUnavailable):
    """The certificate lookup could not be completed or parsed."""

    error_code = "validation_failed"


class PartialFailure(ConversionError):
    """
    The old certificate was deleted but its replacement was not created.

    The customer currently holds no credit at all. This is never retried
    automatically; the attached record holds everything an operator needs
    to replay the creation step.
    """

    error_code = "partial_failure"
    http_status = 502

    def __init__(self, message: str, record):
        super().__init__(message, context=record.remediation())
        self.record = record

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["remediation"] = self.context
        return data
