"""Tests for the partial-failure replay script."""

import importlib.util
import json
from pathlib import Path

import pytest

from conftest import WINTER, RecordingCheckout, make_response
from conversion import CertificateProcessor

SCRIPT = Path(__file__).parent.parent / "scripts" / "replay_creation.py"

REMEDIATION = {
    "certificateCode": "ABCD1234",
    "certificateId": "98765",
    "productId": 1800005,
    "email": "guest@example.com",
    "finalBalance": 5,
    "state": "partial_failure",
    "error": "Failed to create certificate: 500",
}


@pytest.fixture
def script(monkeypatch, settings, client):
    spec = importlib.util.spec_from_file_location("replay_creation", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    processor = CertificateProcessor(settings, client=client, checkout=RecordingCheckout())
    monkeypatch.setattr(module, "CertificateProcessor", lambda _settings: processor)
    return module


class TestReplayScript:

    def test_replays_from_file(self, script, session, tmp_path, capsys):
        session.queue(make_response(200, {"remainingCounts": {WINTER: 5}}))
        payload = tmp_path / "remediation.json"
        payload.write_text(json.dumps({"error": "partial_failure", "remediation": REMEDIATION}))

        assert script.main([str(payload)]) == 0

        assert session.methods() == ["POST"]
        assert "Recreated ABCD1234 with 5 winter sessions" in capsys.readouterr().out

    def test_replays_inline_json(self, script, session):
        session.queue(make_response(200, {"remainingCounts": {WINTER: 5}}))
        assert script.main([json.dumps(REMEDIATION)]) == 0

    def test_create_still_failing(self, script, session, capsys):
        session.queue(make_response(500, text="down"))

        assert script.main([json.dumps(REMEDIATION)]) == 1
        assert "partial_failure" in capsys.readouterr().out

    def test_unreadable_payload(self, script, session):
        assert script.main(["{not json"]) == 2
        assert session.calls == []

    def test_usage(self, script):
        assert script.main([]) == 2
