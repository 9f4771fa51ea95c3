"""Shared fixtures: test key material and a stub processor behind httpx.MockTransport."""

import json

import httpx
import pytest
import pytest_asyncio

from paybridge.common.config import ProcessorConfig
from paybridge.services.checkout.envelope import CipherEnvelope
from paybridge.services.checkout.service import PaymentOrchestrator

SECRET_KEY = "PkW64zMe5NVdrlPVNnjo2Jy9nOb7v1Xg"
IV_KEY = "5NVdrlPVNnjo2Jy9"
PAYMENT_BASE = "https://processor.test/payment"


class StubProcessor:
    """Records outbound checkout calls and answers with a canned reply."""

    def __init__(self, envelope: CipherEnvelope) -> None:
        self.envelope = envelope
        self.requests: list[httpx.Request] = []
        self.reply = None

    def reply_sealed(self, payload, status_code: int = 200) -> None:
        self.reply = httpx.Response(status_code, text=self.envelope.seal(json.dumps(payload)))

    def reply_raw(self, text: str, status_code: int = 200) -> None:
        self.reply = httpx.Response(status_code, text=text)

    def fail_with(self, exc: Exception) -> None:
        self.reply = exc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply

    def sealed_payload(self, index: int = -1) -> dict:
        """Open the envelope the orchestrator sent."""

        body = json.loads(self.requests[index].content)
        return json.loads(self.envelope.open(body["data"]))


@pytest.fixture
def processor_config() -> ProcessorConfig:
    return ProcessorConfig(
        environment="sandbox",
        merchant_code="842217",
        access_code="test-access-code",
        secret_key=SECRET_KEY,
        iv_key=IV_KEY,
        checkout_url="https://processor.test/checkout",
        payment_url=PAYMENT_BASE,
        timeout_seconds=5.0,
    )


@pytest.fixture
def envelope(processor_config) -> CipherEnvelope:
    return CipherEnvelope.from_config(processor_config)


@pytest.fixture
def stub_processor(envelope) -> StubProcessor:
    return StubProcessor(envelope)


@pytest_asyncio.fixture
async def orchestrator(processor_config, envelope, stub_processor):
    async with httpx.AsyncClient(transport=httpx.MockTransport(stub_processor)) as client:
        yield PaymentOrchestrator(processor_config, client, envelope=envelope, service_name="checkout-test")


@pytest.fixture
def valid_payload() -> dict:
    return {
        "amount": "10.000",
        "currency": "KWD",
        "orderReferenceNumber": "BOOKING-1",
        "responseUrl": "https://x/ok",
        "failureUrl": "https://x/fail",
    }
