"""
Acuity Scheduling Client

Thin HTTP client for the certificate endpoints of the credit service.
Reads are retried on transient failures; delete and create are sent exactly
once, because neither is safe to repeat.
"""

import logging
import time

import requests

from .config import Settings

logger = logging.getLogger(__name__)


class AcuityApiError(Exception):
    """The credit service answered with a non-2xx status."""

    def __init__(self, status: int, error: str, message: str):
        super().__init__(f"{status} {error}: {message}")
        self.status = status
        self.error = error
        self.message = message

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500


class AcuityConnectionError(Exception):
    """The request never produced a usable response (network, timeout, bad body)."""


class AcuityClient:
    """Certificate operations against the Acuity REST API."""

    def __init__(self, settings: Settings, session: requests.Session | None = None, backoff: float = 0.5):
        self.base_url = settings.acuity_base_url.rstrip("/")
        self.timeout = settings.acuity_timeout
        self.read_attempts = settings.acuity_read_attempts
        self.backoff = backoff

        self.session = session or requests.Session()
        self.session.auth = (settings.acuity_user_id, settings.acuity_api_key)
        self.session.headers.update({"Accept": "application/json"})

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def check_certificate(self, code: str, appointment_type_id: str) -> dict:
        """Look a certificate up for one appointment type. Safe to retry."""
        params = {"certificate": code, "appointmentTypeID": appointment_type_id}
        response = self._get_with_retry("/certificates/check", params)
        return self._parse(response)

    def delete_certificate(self, external_id: str) -> None:
        """Delete a certificate. Never retried."""
        logger.info(f"Deleting certificate id={external_id}")
        response = self._send("DELETE", f"/certificates/{external_id}")
        if not response.ok:
            raise self._api_error(response)

    def create_certificate(self, code: str, product_id: int, email: str) -> dict:
        """Create a certificate bound to a product. Never retried."""
        logger.info(f"Creating certificate {code} for product {product_id}")
        response = self._send(
            "POST",
            "/certificates",
            json={"certificate": code, "productID": product_id, "email": email},
        )
        data = self._parse(response)
        if not isinstance(data, dict):
            raise AcuityConnectionError(f"Unexpected create response body: {data!r}")
        return data

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise AcuityConnectionError(f"{method} {path} failed: {e}") from e

    def _get_with_retry(self, path: str, params: dict) -> requests.Response:
        last_error = None
        for attempt in range(1, self.read_attempts + 1):
            try:
                response = self._send("GET", path, params=params)
            except AcuityConnectionError as e:
                last_error = e
            else:
                if response.status_code < 500:
                    return response
                last_error = self._api_error(response)

            logger.warning(f"GET {path} attempt {attempt}/{self.read_attempts} failed: {last_error}")
            if attempt < self.read_attempts and self.backoff:
                time.sleep(self.backoff * attempt)

        raise last_error

    def _parse(self, response: requests.Response) -> dict:
        if not response.ok:
            raise self._api_error(response)
        try:
            return response.json()
        except ValueError as e:
            raise AcuityConnectionError(f"Unreadable response body ({response.status_code})") from e

    @staticmethod
    def _api_error(response: requests.Response) -> AcuityApiError:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return AcuityApiError(
            status=response.status_code,
            error=data.get("error") or f"http_{response.status_code}",
            message=data.get("message") or response.text or response.reason or "",
        )
