"""Request, payload and result schemas for the indirect checkout flow."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_FIELDS = ("amount", "currency", "orderReferenceNumber", "responseUrl", "failureUrl")
VARIABLE_SLOTS = ("variable1", "variable2", "variable3", "variable4", "variable5")

PAYMENT_TYPE_INDIRECT = 0
PROTOCOL_VERSION = "2.0"


class PaymentRequest(BaseModel):
    """Merchant payment-initiation request, after required-field checks."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    amount: str
    currency: str
    order_reference_number: str = Field(alias="orderReferenceNumber")
    response_url: str = Field(alias="responseUrl")
    failure_url: str = Field(alias="failureUrl")
    name: str | None = None
    mobile_number: str | None = None
    email: str | None = None
    webhook_url: str | None = Field(default=None, alias="webhookUrl")
    callback_url: str | None = Field(default=None, alias="callbackUrl")
    variable1: str | None = None
    variable2: str | None = None
    variable3: str | None = None
    variable4: str | None = None
    variable5: str | None = None

    def resolved_webhook_url(self) -> str | None:
        """First non-empty of `callbackUrl`, `webhookUrl`."""

        return self.callback_url or self.webhook_url or None

    def variables(self) -> dict[str, str]:
        return {slot: getattr(self, slot) for slot in VARIABLE_SLOTS if getattr(self, slot)}


class CanonicalPaymentPayload(BaseModel):
    """Exact JSON shape the processor expects inside the sealed envelope."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    merchant_code: str = Field(alias="merchantCode")
    amount: str
    payment_type: Literal[0] = Field(default=PAYMENT_TYPE_INDIRECT, alias="paymentType")
    currency: str
    response_url: str = Field(alias="responseUrl")
    failure_url: str = Field(alias="failureUrl")
    version: str = PROTOCOL_VERSION
    order_reference_number: str = Field(alias="orderReferenceNumber")
    name: str | None = None
    mobile_number: str | None = None
    email: str | None = None
    webhook_url: str | None = Field(default=None, alias="webhookUrl")
    variable1: str | None = None
    variable2: str | None = None
    variable3: str | None = None
    variable4: str | None = None
    variable5: str | None = None

    @classmethod
    def build(cls, request: PaymentRequest, merchant_code: str) -> "CanonicalPaymentPayload":
        return cls(
            merchant_code=merchant_code,
            amount=request.amount,
            currency=request.currency,
            response_url=request.response_url,
            failure_url=request.failure_url,
            order_reference_number=request.order_reference_number,
            name=request.name,
            mobile_number=request.mobile_number,
            email=request.email,
            webhook_url=request.resolved_webhook_url(),
            **request.variables(),
        )

    def to_json(self) -> str:
        """Compact JSON with protocol field names; unset optionals are omitted."""

        return self.model_dump_json(by_alias=True, exclude_none=True)


class ProcessorResponse(BaseModel):
    """Decrypted processor reply. Unknown keys are kept for diagnostics."""

    model_config = ConfigDict(extra="allow")

    status: Any = False
    message: Any = None
    code: Any = None
    response: Any = None

    def token(self) -> str | None:
        """Payment token from `response.data`, falling back to `response.token`."""

        inner = self.response if isinstance(self.response, dict) else {}
        token = inner.get("data") or inner.get("token")
        return str(token) if token else None


class PaymentResult(BaseModel):
    """Normalized outcome handed back to the HTTP layer."""

    success: bool
    status_code: int = 200
    payment_url: str | None = None
    raw_response: dict[str, Any] | None = None
    message: str | None = None
    raw_error_body: Any = None
    missing_fields: list[str] = Field(default_factory=list)

    def to_public(self) -> dict[str, Any]:
        """Client-facing JSON body."""

        if self.success:
            return {
                "success": True,
                "paymentUrl": self.payment_url,
                "processorResponse": self.raw_response,
            }
        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.missing_fields:
            body["missingFields"] = self.missing_fields
        if self.raw_error_body is not None:
            body["processorError"] = self.raw_error_body
        return body
