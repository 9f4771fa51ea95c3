"""Central environment-driven settings for the checkout service.

The process loads this once at startup. Processor credentials are resolved into
an immutable `ProcessorConfig`; any gap in that set is fatal.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from paybridge.common.errors import ConfigurationError

SECRET_KEY_LENGTH = 32
IV_KEY_LENGTH = 16

CHECKOUT_PATH = "/checkout"
PAYMENT_PATH = "/payment"

DEFAULT_BASE_URLS = {
    "sandbox": "https://sandbox.hesabe.com",
    "production": "https://api.hesabe.com",
}

# Public sandbox credentials published in the processor's integration docs.
SANDBOX_CREDENTIALS = {
    "merchant_code": "842217",
    "access_code": "c333729b-d060-4b74-a49d-7686a8353481",
    "secret_key": "PkW64zMe5NVdrlPVNnjo2Jy9nOb7v1Xg",
    "iv_key": "5NVdrlPVNnjo2Jy9",
}


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "checkout"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 4000
    otel_exporter_otlp_endpoint: str | None = None
    processor_env: Literal["sandbox", "production"] = "sandbox"
    processor_merchant_code: str | None = None
    processor_access_code: str | None = None
    processor_secret_key: str | None = None
    processor_iv_key: str | None = None
    processor_base_url: str | None = None
    processor_timeout_seconds: float = 30.0
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class ProcessorConfig(BaseModel):
    """One consistent processor credential set plus its endpoints."""

    model_config = ConfigDict(frozen=True)

    environment: str
    merchant_code: str
    access_code: str
    secret_key: str
    iv_key: str
    checkout_url: str
    payment_url: str
    timeout_seconds: float = 30.0


def _credential_overrides(settings: CommonSettings) -> dict[str, str | None]:
    return {
        "merchant_code": settings.processor_merchant_code,
        "access_code": settings.processor_access_code,
        "secret_key": settings.processor_secret_key,
        "iv_key": settings.processor_iv_key,
    }


def load_processor_config(settings: CommonSettings) -> ProcessorConfig:
    """Resolve the processor credential set for the configured environment.

    Credentials are taken as a whole: either every one of them comes from the
    environment, or (sandbox only) every one comes from the public sandbox set.
    """

    overrides = _credential_overrides(settings)
    provided = {name: value for name, value in overrides.items() if value}
    missing = sorted(name for name in overrides if name not in provided)

    if not provided and settings.processor_env == "sandbox":
        credentials = dict(SANDBOX_CREDENTIALS)
    elif missing:
        env_names = ", ".join(f"PROCESSOR_{name.upper()}" for name in missing)
        raise ConfigurationError(
            f"incomplete {settings.processor_env} processor credentials, missing: {env_names}"
        )
    else:
        credentials = provided

    if len(credentials["secret_key"].encode("utf-8")) != SECRET_KEY_LENGTH:
        raise ConfigurationError(f"PROCESSOR_SECRET_KEY must be {SECRET_KEY_LENGTH} bytes")
    if len(credentials["iv_key"].encode("utf-8")) != IV_KEY_LENGTH:
        raise ConfigurationError(f"PROCESSOR_IV_KEY must be {IV_KEY_LENGTH} bytes")
    if settings.processor_timeout_seconds <= 0:
        raise ConfigurationError("PROCESSOR_TIMEOUT_SECONDS must be positive")

    base_url = (settings.processor_base_url or DEFAULT_BASE_URLS[settings.processor_env]).rstrip("/")
    return ProcessorConfig(
        environment=settings.processor_env,
        checkout_url=f"{base_url}{CHECKOUT_PATH}",
        payment_url=f"{base_url}{PAYMENT_PATH}",
        timeout_seconds=settings.processor_timeout_seconds,
        **credentials,
    )


settings = CommonSettings()
