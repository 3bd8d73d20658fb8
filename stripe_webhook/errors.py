"""Exception hierarchy for the Stripe webhook SDK."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass
class StripeErrorBody:
    """Stripe's structured error, as found under "error" in API responses."""
    type: str = ""
    param: str = ""
    message: str = ""
    code: str = ""
    doc_url: str = ""
    charge: str = ""
    decline_code: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "StripeErrorBody":
        return cls(**{
            name: str(raw.get(name) or "")
            for name in cls.__dataclass_fields__
        })


class StripeWebhookError(Exception):
    """Base exception for everything raised by this package."""


class WebhookError(StripeWebhookError):
    """A webhook delivery was rejected."""


class InvalidHeader(WebhookError):
    """Stripe-Signature header is missing, malformed, or has no v1 signature."""


class TooOld(WebhookError):
    """Delivery timestamp is outside the freshness window."""


class TooNew(WebhookError):
    """Delivery timestamp is further in the future than allowed."""


class InvalidSignature(WebhookError):
    """No delivered signature matches any configured secret."""


class RetryExhausted(StripeWebhookError):
    """Request kept asking to be retried for longer than max_retry."""


class APIError(StripeWebhookError):
    """Stripe API answered with a status code >= 400."""

    def __init__(
        self,
        method: str,
        url: str,
        status_code: int,
        error: Optional[StripeErrorBody] = None
    ):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.error = error or StripeErrorBody()
        super().__init__(
            f"code {status_code} for {method} {url} "
            f"({self.error.code}: {self.error.message})"
        )
