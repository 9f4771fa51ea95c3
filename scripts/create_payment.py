"""Post a sample indirect payment to a running checkout service."""

import argparse
import json
from uuid import uuid4

import httpx


def main() -> None:
    """CLI entrypoint for manual checkout smoke tests."""

    parser = argparse.ArgumentParser(description="Create one indirect payment through the checkout service.")
    parser.add_argument("--service-url", default="http://localhost:4000")
    parser.add_argument("--amount", default="10.000")
    parser.add_argument("--currency", default="KWD")
    parser.add_argument("--order-reference", default=None)
    parser.add_argument("--response-url", default="https://example.com/payments/success")
    parser.add_argument("--failure-url", default="https://example.com/payments/failure")
    parser.add_argument("--webhook-url", default=None)
    args = parser.parse_args()

    payload = {
        "amount": args.amount,
        "currency": args.currency,
        "orderReferenceNumber": args.order_reference or f"ORDER-{uuid4().hex[:12].upper()}",
        "responseUrl": args.response_url,
        "failureUrl": args.failure_url,
    }
    if args.webhook_url:
        payload["webhookUrl"] = args.webhook_url

    resp = httpx.post(
        f"{args.service_url}/checkout/indirect-payment",
        json=payload,
        headers={"x-correlation-id": str(uuid4())},
        timeout=40.0,
    )
    print(f"status={resp.status_code}")
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
