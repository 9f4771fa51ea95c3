"""Seal or open a processor envelope from the command line.

Handy for reading encrypted error bodies captured from the processor, or for
producing a sealed reply when stubbing the processor by hand.
"""

import argparse
import json
import sys
from pathlib import Path

from paybridge.common.config import load_processor_config, settings
from paybridge.common.errors import EnvelopeError
from paybridge.services.checkout.envelope import CipherEnvelope


def build_envelope(secret_key: str | None, iv_key: str | None) -> CipherEnvelope:
    """Explicit key material wins; otherwise use the configured credential set."""

    if bool(secret_key) != bool(iv_key):
        raise SystemExit("Provide both --secret-key and --iv-key, or neither")
    if secret_key and iv_key:
        return CipherEnvelope(secret_key, iv_key)
    return CipherEnvelope.from_config(load_processor_config(settings))


def main() -> None:
    """Parse CLI args and print the sealed or opened text."""

    parser = argparse.ArgumentParser(description="Seal or open a processor envelope.")
    parser.add_argument("action", choices=["seal", "open"])
    parser.add_argument("--text", default=None, help="Inline input text")
    parser.add_argument("--file", dest="input_file", default=None, help="Path to input file")
    parser.add_argument("--secret-key", default=None)
    parser.add_argument("--iv-key", default=None)
    parser.add_argument("--pretty", action="store_true", help="Pretty-print opened JSON")
    args = parser.parse_args()

    if bool(args.text) == bool(args.input_file):
        raise SystemExit("Provide exactly one of --text or --file")
    data = args.text if args.text else Path(args.input_file).read_text()

    envelope = build_envelope(args.secret_key, args.iv_key)
    if args.action == "seal":
        print(envelope.seal(data))
        return

    try:
        opened = envelope.open(data)
    except EnvelopeError as exc:
        print(f"could not open envelope: {exc.message}", file=sys.stderr)
        raise SystemExit(1) from exc
    if args.pretty:
        try:
            opened = json.dumps(json.loads(opened), indent=2)
        except ValueError:
            pass
    print(opened)


if __name__ == "__main__":
    main()
