"""
Runtime Configuration

Settings are read from the environment once, when the process starts.
Missing credentials raise ConfigurationError immediately instead of on the
first request that needs them.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping

from .errors import ConfigurationError
from .tiers import parse_product_mapping

DEFAULT_ACUITY_BASE_URL = "https://acuityscheduling.com/api/v1"

# Appointment-type ids keying the remainingCounts buckets on a certificate.
OFFSEASON_APPOINTMENT_TYPE_ID = "32116738"
WINTER_APPOINTMENT_TYPE_ID = "25250022"

REQUIRED_VARIABLES = ("ACUITY_USER_ID", "ACUITY_API_KEY", "STRIPE_SECRET_KEY", "WINTER_PRODUCT_IDS")


@dataclass(frozen=True)
class Settings:
    """Validated process configuration."""

    acuity_user_id: str
    acuity_api_key: str
    stripe_secret_key: str
    winter_product_ids: dict = field(default_factory=dict)
    acuity_base_url: str = DEFAULT_ACUITY_BASE_URL
    offseason_type_id: str = OFFSEASON_APPOINTMENT_TYPE_ID
    winter_type_id: str = WINTER_APPOINTMENT_TYPE_ID
    acuity_timeout: float = 10.0
    acuity_read_attempts: int = 3
    lease_timeout: float = 30.0
    base_url: str = "http://localhost:3000"
    environment: str = "dev"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables. Raises ConfigurationError."""
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            winter_product_ids = parse_product_mapping(env["WINTER_PRODUCT_IDS"])
        except ValueError as e:
            raise ConfigurationError(f"WINTER_PRODUCT_IDS is malformed: {e}") from e

        try:
            timeout = float(env.get("ACUITY_TIMEOUT", 10))
            attempts = int(env.get("ACUITY_READ_ATTEMPTS", 3))
            lease_timeout = float(env.get("CONVERSION_LEASE_TIMEOUT", 30))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        if timeout <= 0 or attempts < 1 or lease_timeout <= 0:
            raise ConfigurationError(
                "ACUITY_TIMEOUT and CONVERSION_LEASE_TIMEOUT must be positive, "
                "ACUITY_READ_ATTEMPTS at least 1"
            )

        return cls(
            acuity_user_id=env["ACUITY_USER_ID"],
            acuity_api_key=env["ACUITY_API_KEY"],
            stripe_secret_key=env["STRIPE_SECRET_KEY"],
            winter_product_ids=winter_product_ids,
            acuity_base_url=env.get("ACUITY_API_BASE_URL") or DEFAULT_ACUITY_BASE_URL,
            offseason_type_id=env.get("ACUITY_OFFSEASON_TYPE_ID") or OFFSEASON_APPOINTMENT_TYPE_ID,
            winter_type_id=env.get("ACUITY_WINTER_TYPE_ID") or WINTER_APPOINTMENT_TYPE_ID,
            acuity_timeout=timeout,
            acuity_read_attempts=attempts,
            lease_timeout=lease_timeout,
            base_url=(env.get("BASE_URL") or "http://localhost:3000").rstrip("/"),
            environment=env.get("ENVIRONMENT", "dev"),
        )
