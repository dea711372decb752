"""
Tests for the Certificate Processor

Run with: python -m pytest tests/ -v
"""

import pytest

from conftest import WINTER, RecordingCheckout, certificate_payload, conversion_body, make_response
from conversion import CertificateProcessor
from conversion.errors import (
    InvalidBalance,
    PartialFailure,
    TierResolutionFailure,
    ValidationError,
)


@pytest.fixture
def checkout():
    return RecordingCheckout()


@pytest.fixture
def processor(settings, client, checkout):
    return CertificateProcessor(settings, client=client, checkout=checkout)


class TestCheck:
    """Scenario A end to end: 110/165, 5 sessions."""

    def test_priced_view(self, processor, session):
        session.queue(make_response(200, certificate_payload(product_id=1268093, offseason=5)))

        result = processor.check("abcd1234")

        assert result["isValid"] is True
        cert = result["certificate"]
        assert cert["code"] == "ABCD1234"
        assert cert["id"] == "98765"
        assert cert["remainingBalance"] == 5
        assert cert["costPerSession"] == 55.0
        assert cert["totalCost"] == 275.0
        assert cert["adjustedBalance"] == 3
        assert cert["pricingTier"] == {"name": "TIER_1", "offseasonVSD": 110.0, "winterVSD": 165.0}
        assert "otherRemainingBalance" not in cert

    def test_other_balance_included_when_present(self, processor, session):
        session.queue(make_response(200, certificate_payload(offseason=2, other={WINTER: 4})))

        cert = processor.check("ABCD1234")["certificate"]

        assert cert["otherRemainingBalance"] == 4


class TestCheckout:

    def test_explicit_tier(self, processor, checkout):
        result = processor.checkout({"tier": "2", "certificateCode": "abcd1234", "email": "guest@example.com"})

        assert result == {"url": "https://checkout.example.com/ABCD1234"}
        assert checkout.calls == [("TIER_2", "ABCD1234", "guest@example.com")]

    def test_tier_from_product_id(self, processor, checkout):
        processor.checkout({"productId": 1742293, "certificateCode": "ABCD1234", "email": "guest@example.com"})
        assert checkout.calls[0][0] == "TIER_3"

    def test_unknown_product_uses_default_tier(self, processor, checkout):
        processor.checkout({"productId": 42, "certificateCode": "ABCD1234", "email": "guest@example.com"})
        assert checkout.calls[0][0] == "TIER_1"

    def test_unknown_tier(self, processor):
        with pytest.raises(TierResolutionFailure):
            processor.checkout({"tier": "9", "certificateCode": "ABCD1234", "email": "guest@example.com"})

    def test_tier_required(self, processor):
        with pytest.raises(ValidationError):
            processor.checkout({"certificateCode": "ABCD1234", "email": "guest@example.com"})

    def test_bad_email(self, processor, checkout):
        with pytest.raises(ValidationError):
            processor.checkout({"tier": "1", "certificateCode": "ABCD1234", "email": "nope"})
        assert checkout.calls == []


class TestConvert:

    def test_upgrade(self, processor, session):
        session.queue(make_response(204), make_response(200, {"remainingCounts": {WINTER: 5}}))

        result = processor.convert(conversion_body())

        assert result == {
            "success": True,
            "certificate": {"code": "ABCD1234", "finalBalance": 5, "productId": 1800005},
        }

    def test_adjustment(self, processor, session):
        session.queue(make_response(204), make_response(200, {"remainingCounts": {WINTER: 3}}))

        result = processor.convert(conversion_body(conversionType="adjustment"))

        assert result["certificate"]["finalBalance"] == 3
        assert result["certificate"]["productId"] == 1800003

    def test_missing_field(self, processor, session):
        body = conversion_body()
        del body["certificateId"]

        with pytest.raises(ValidationError, match="certificateId"):
            processor.convert(body)
        assert session.calls == []

    def test_bad_conversion_type(self, processor, session):
        with pytest.raises(ValidationError):
            processor.convert(conversion_body(conversionType="refund"))
        assert session.calls == []

    def test_non_numeric_balance(self, processor):
        with pytest.raises(ValidationError):
            processor.convert(conversion_body(currentBalance="lots"))

    def test_fractional_balance_is_not_truncated(self, processor, session):
        with pytest.raises(ValidationError):
            processor.convert(conversion_body(currentBalance=5.5))
        assert session.calls == []

    def test_invalid_balance_makes_no_calls(self, processor, session):
        with pytest.raises(InvalidBalance):
            processor.convert(conversion_body(currentBalance=25))
        assert session.calls == []

    def test_partial_failure_surfaces(self, processor, session):
        session.queue(make_response(204), make_response(503, text="down"))

        with pytest.raises(PartialFailure) as exc:
            processor.convert(conversion_body())
        assert exc.value.context["certificateId"] == "98765"


class TestReplay:

    def test_replay_from_remediation_payload(self, processor, session):
        session.queue(make_response(200, {"remainingCounts": {WINTER: 5}}))

        result = processor.replay({
            "certificateCode": "ABCD1234",
            "certificateId": "98765",
            "productId": 1800005,
            "email": "guest@example.com",
            "finalBalance": 5,
        })

        assert result["certificate"]["finalBalance"] == 5
        assert session.methods() == ["POST"]

    def test_incomplete_payload(self, processor, session):
        with pytest.raises(ValidationError):
            processor.replay({"certificateCode": "ABCD1234"})
        assert session.calls == []
