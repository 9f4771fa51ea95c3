"""Indirect-payment checkout orchestration.

One call to `initiate_payment` walks a single request through
RECEIVED -> VALIDATED -> SEALED -> SENT -> SUCCEEDED/FAILED, makes at most one
processor round-trip and always returns a `PaymentResult`.
"""

import json
from time import perf_counter
from typing import Any

import httpx
import pydantic
from pydantic_core import PydanticSerializationError

from paybridge.common.config import ProcessorConfig
from paybridge.common.errors import (
    EncodingError,
    EnvelopeError,
    GatewayError,
    ProcessorError,
    TokenMissingError,
    TransportError,
    ValidationError,
)
from paybridge.common.logging import logger, order_reference_ctx
from paybridge.common.metrics import (
    checkout_failure_total,
    checkout_latency_seconds,
    checkout_requests_total,
    checkout_success_total,
    processor_request_duration_seconds,
)
from paybridge.common.state_machine import validate_transition
from paybridge.common.tracing import checkout_tracer
from paybridge.services.checkout.envelope import CipherEnvelope
from paybridge.services.checkout.schemas import (
    REQUIRED_FIELDS,
    CanonicalPaymentPayload,
    PaymentRequest,
    PaymentResult,
    ProcessorResponse,
)

DEFAULT_PROCESSOR_FAILURE = "processor checkout failed"
DEFAULT_UNEXPECTED_FAILURE = "unexpected checkout failure"


def parse_payment_request(raw_payload: Any) -> PaymentRequest:
    """Parse a JSON string/bytes or mapping into a `PaymentRequest`."""

    if isinstance(raw_payload, (bytes, bytearray)):
        raw_payload = raw_payload.decode("utf-8", errors="replace")
    if isinstance(raw_payload, str):
        try:
            raw_payload = json.loads(raw_payload)
        except ValueError as exc:
            raise ValidationError("invalid JSON", body=raw_payload) from exc
    if not isinstance(raw_payload, dict):
        raise ValidationError("payload must be a JSON object", body=raw_payload)

    missing = [name for name in REQUIRED_FIELDS if not raw_payload.get(name)]
    if missing:
        raise ValidationError(
            f"missing required fields: {', '.join(missing)}",
            missing_fields=missing,
        )

    try:
        return PaymentRequest.model_validate(raw_payload)
    except pydantic.ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        raise ValidationError(f"invalid field values: {', '.join(fields)}") from exc


class CheckoutAttempt:
    """Tracks one request through the checkout state machine."""

    def __init__(self) -> None:
        self.state = "RECEIVED"

    def advance(self, new_state: str) -> None:
        validate_transition(self.state, new_state)
        logger.debug("checkout state %s -> %s", self.state, new_state)
        self.state = new_state


class PaymentOrchestrator:
    """Turns merchant requests into processor checkouts and normalized results."""

    def __init__(
        self,
        config: ProcessorConfig,
        client: httpx.AsyncClient,
        envelope: CipherEnvelope | None = None,
        service_name: str = "checkout",
    ) -> None:
        self.config = config
        self.client = client
        self.envelope = envelope or CipherEnvelope.from_config(config)
        self.service_name = service_name

    async def initiate_payment(self, raw_payload: Any) -> PaymentResult:
        """Run the full checkout flow. Never raises for request-level failures."""

        checkout_requests_total.labels(service=self.service_name).inc()
        attempt = CheckoutAttempt()
        with checkout_latency_seconds.labels(service=self.service_name).time():
            try:
                result = await self._run(attempt, raw_payload)
            except GatewayError as exc:
                attempt.advance("FAILED")
                return self._failure(exc)
            except Exception as exc:
                logger.exception("unexpected checkout failure: %s", exc)
                attempt.advance("FAILED")
                return self._failure(GatewayError(DEFAULT_UNEXPECTED_FAILURE))

        attempt.advance("SUCCEEDED")
        checkout_success_total.labels(service=self.service_name).inc()
        logger.info("checkout succeeded")
        return result

    async def _run(self, attempt: CheckoutAttempt, raw_payload: Any) -> PaymentResult:
        request = parse_payment_request(raw_payload)
        order_reference_ctx.set(request.order_reference_number)
        attempt.advance("VALIDATED")

        payload = CanonicalPaymentPayload.build(request, self.config.merchant_code)
        try:
            payload_json = payload.to_json()
        except PydanticSerializationError as exc:
            raise EncodingError("payment request is not representable as UTF-8", status_code=400) from exc
        sealed = self.envelope.seal(payload_json)
        attempt.advance("SEALED")

        body = await self._transmit(sealed)
        attempt.advance("SENT")

        decrypted, reply = self._interpret(body)
        token = reply.token()
        if not token:
            raise TokenMissingError("could not find payment token in processor response", body=decrypted)

        payment_url = str(httpx.URL(self.config.payment_url, params={"data": token}))
        return PaymentResult(success=True, payment_url=payment_url, raw_response=decrypted)

    async def _transmit(self, sealed: str) -> str:
        """POST the envelope and return the raw response text."""

        started = perf_counter()
        outcome = "error"
        try:
            with checkout_tracer.start_as_current_span("processor.checkout"):
                response = await self.client.post(
                    self.config.checkout_url,
                    json={"data": sealed},
                    headers={"accessCode": self.config.access_code, "Accept": "application/json"},
                    timeout=self.config.timeout_seconds,
                )
                outcome = str(response.status_code)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"processor returned HTTP {exc.response.status_code}",
                body=exc.response.text,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TimeoutException as exc:
            outcome = "timeout"
            raise TransportError("processor request timed out") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"processor unreachable: {exc}") from exc
        finally:
            processor_request_duration_seconds.labels(
                service=self.service_name,
                outcome=outcome,
            ).observe(max(0.0, perf_counter() - started))
        return response.text

    def _interpret(self, body: str) -> tuple[Any, ProcessorResponse]:
        """Open a 2xx processor body and enforce its status flag."""

        try:
            decrypted = self.envelope.open(body)
        except EnvelopeError as exc:
            exc.body = body
            raise

        try:
            data = json.loads(decrypted)
        except ValueError as exc:
            raise GatewayError("processor response is not valid JSON", body=decrypted) from exc
        # A non-object reply carries no status flag and counts as a declined checkout.
        reply = ProcessorResponse.model_validate(data) if isinstance(data, dict) else ProcessorResponse()
        if not reply.status:
            message = str(reply.message) if reply.message else DEFAULT_PROCESSOR_FAILURE
            raise ProcessorError(message, body=data)
        return data, reply

    def _recover_error_body(self, body: str) -> tuple[str, str | None]:
        """Best-effort decrypt of an error body; falls back to the raw text."""

        try:
            decrypted = self.envelope.open(body)
        except EnvelopeError as exc:
            logger.warning("could not decrypt processor error body: %s", exc.message)
            return body, None

        message = None
        try:
            parsed = json.loads(decrypted)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict) and parsed.get("message"):
            message = str(parsed["message"])
        return decrypted, message

    def _failure(self, exc: GatewayError) -> PaymentResult:
        message = exc.message
        diagnostic = exc.body
        if isinstance(exc, TransportError) and isinstance(exc.body, str):
            diagnostic, recovered = self._recover_error_body(exc.body)
            message = recovered or message

        error_type = type(exc).__name__
        checkout_failure_total.labels(service=self.service_name, error_type=error_type).inc()
        logger.warning(
            "checkout failed error_type=%s status_code=%s reason=%s",
            error_type,
            exc.status_code,
            exc.message,
        )
        return PaymentResult(
            success=False,
            status_code=exc.status_code,
            message=message,
            raw_error_body=diagnostic,
            missing_fields=getattr(exc, "missing_fields", []),
        )
