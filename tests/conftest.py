"""
Shared test fixtures.

Entry-point modules load settings at import time, so dummy credentials are
seeded here before any test module imports them. Upstream HTTP is served by
FakeSession, which replays queued responses and records every request.
"""

import json
import os

import pytest
import requests

WINTER_PRODUCT_IDS = {str(n): 1800000 + n for n in range(1, 11)}

os.environ.setdefault("ACUITY_USER_ID", "test-user")
os.environ.setdefault("ACUITY_API_KEY", "test-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("WINTER_PRODUCT_IDS", json.dumps(WINTER_PRODUCT_IDS))

from conversion.acuity import AcuityClient  # noqa: E402
from conversion.config import Settings  # noqa: E402

OFFSEASON = "32116738"
WINTER = "25250022"


def make_response(status: int, body=None, text: str | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = (text or "").encode("utf-8")
    return response


class FakeSession(requests.Session):
    """A requests session that never touches the network."""

    def __init__(self, *responses):
        super().__init__()
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def methods(self) -> list:
        return [method for method, _, _ in self.calls]


@pytest.fixture
def settings():
    return Settings.from_env({
        "ACUITY_USER_ID": "test-user",
        "ACUITY_API_KEY": "test-key",
        "STRIPE_SECRET_KEY": "sk_test_dummy",
        "WINTER_PRODUCT_IDS": json.dumps(WINTER_PRODUCT_IDS),
        "BASE_URL": "https://upgrade.example.com",
        "CONVERSION_LEASE_TIMEOUT": "0.2",
    })


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(settings, session):
    return AcuityClient(settings, session=session, backoff=0)


def certificate_payload(product_id=1268093, offseason=5, other=None, certificate_id="98765"):
    """Body of a successful /certificates/check response."""
    counts = {OFFSEASON: offseason}
    counts.update(other or {})
    return {
        "id": certificate_id,
        "certificate": "ABCD1234",
        "productID": product_id,
        "remainingCounts": counts,
    }


class RecordingCheckout:
    """Stands in for CheckoutBridge."""

    def __init__(self):
        self.calls = []

    def create_session(self, tier, code, email):
        self.calls.append((tier.name, code, email))
        return f"https://checkout.example.com/{code}"


def conversion_body(**overrides):
    """Body of a POST /api/certificates/convert request."""
    body = {
        "certificateCode": "abcd1234",
        "certificateId": "98765",
        "email": "guest@example.com",
        "conversionType": "upgrade",
        "currentBalance": 5,
        "adjustedBalance": 3,
        "otherRemainingBalance": 0,
    }
    body.update(overrides)
    return body
