"""Stripe webhook verification SDK for Python."""

__version__ = "1.0.0"

from .client import StripeClient
from .errors import (
    StripeWebhookError,
    WebhookError,
    InvalidHeader,
    TooOld,
    TooNew,
    InvalidSignature,
    APIError,
    RetryExhausted
)
from .types import (
    SignatureHeader,
    VerificationConfig,
    VerifiedEvent,
    Event,
    EventData,
    EventRequest,
    StripeErrorBody
)
from .utils.signature import generate_header, parse_header
from .webhook import WebhookVerifier, verify_payload

__all__ = [
    "StripeClient",
    "WebhookVerifier",
    "verify_payload",
    "parse_header",
    "generate_header",
    "SignatureHeader",
    "VerificationConfig",
    "VerifiedEvent",
    "Event",
    "EventData",
    "EventRequest",
    "StripeErrorBody",
    "StripeWebhookError",
    "WebhookError",
    "InvalidHeader",
    "TooOld",
    "TooNew",
    "InvalidSignature",
    "APIError",
    "RetryExhausted"
]
