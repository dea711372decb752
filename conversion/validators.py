"""
Input Validation for the Certificate Conversion Engine

Validates caller input before any upstream call is made.
Raises ValidationError with clear messages for any constraint violations.
"""

import re

from .errors import ValidationError
from .models import ConversionRequest

CODE_LENGTH = 8
CODE_PATTERN = re.compile(r"^[A-Z0-9]{8}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class InputValidator:
    """Validates certificate codes and conversion requests."""

    def normalize_code(self, code) -> str:
        """Return the upper-cased code, or raise ValidationError."""
        if code is None or not str(code).strip():
            raise ValidationError("Certificate code is required", error_code="missing_certificate")

        normalized = str(code).strip().upper()
        if len(normalized) != CODE_LENGTH:
            raise ValidationError(f"Certificate code must be exactly {CODE_LENGTH} characters")
        if not CODE_PATTERN.match(normalized):
            raise ValidationError("Certificate code may only contain letters and digits")
        return normalized

    def validate_email(self, email) -> str:
        if not email or not EMAIL_PATTERN.match(str(email).strip()):
            raise ValidationError(f"Invalid email address: {email!r}")
        return str(email).strip()

    def validate_request(self, request: ConversionRequest) -> None:
        """
        Run all request checks. Raises ValidationError if any check fails.
        """
        request.code = self.normalize_code(request.code)
        request.email = self.validate_email(request.email)

        if not request.external_id:
            raise ValidationError("certificateId is required")

        for name in ("current_balance", "adjusted_balance", "other_remaining_balance"):
            value = getattr(request, name)
            if value < 0:
                raise ValidationError(f"{name} cannot be negative, got: {value}")

        if request.adjusted_balance > request.current_balance:
            raise ValidationError(
                f"adjusted_balance ({request.adjusted_balance}) cannot exceed "
                f"current_balance ({request.current_balance})"
            )
