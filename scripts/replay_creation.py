#!/usr/bin/env python3
"""
Replay the create step of a partially failed certificate conversion.

When a conversion deletes the old certificate but fails to create the new one,
the API logs (and returns) a remediation payload like:

    {"certificateCode": "ABCD1234", "certificateId": "98765", "productId": 1800005,
     "email": "guest@example.com", "finalBalance": 5, ...}

Save it to a file (or pass it inline) and run:

    python scripts/replay_creation.py remediation.json
    python scripts/replay_creation.py '{"certificateCode": "ABCD1234", ...}'

Uses the same environment variables as the API.
"""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from conversion import CertificateProcessor, ConversionError, Settings  # noqa: E402


def load_payload(arg: str) -> dict:
    """Read the remediation payload from a file path or an inline JSON string."""
    if arg.lstrip().startswith("{"):
        return json.loads(arg)
    return json.loads(Path(arg).read_text())


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print(__doc__)
        return 2

    logging.basicConfig(level=logging.INFO)

    try:
        payload = load_payload(argv[0])
    except (OSError, json.JSONDecodeError) as e:
        print(f"❌ Could not read remediation payload: {e}")
        return 2

    # Accept the full API error body as well as the bare remediation object
    payload = payload.get("remediation", payload)

    try:
        processor = CertificateProcessor(Settings.from_env())
        result = processor.replay(payload)
    except ConversionError as e:
        print(f"❌ Replay failed ({e.error_code}): {e.message}")
        if e.context:
            print(json.dumps(e.context, indent=2))
        return 1

    certificate = result["certificate"]
    print(f"✅ Recreated {certificate['code']} with {certificate['finalBalance']} winter sessions "
          f"(product {certificate['productId']})")
    return 0


if __name__ == '__main__':
    sys.exit(main())
