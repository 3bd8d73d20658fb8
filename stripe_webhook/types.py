"""Type definitions for the Stripe webhook SDK."""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidHeader, StripeErrorBody

# Only scheme Stripe signs with; everything else is ignored to prevent downgrades.
SIGNATURE_SCHEME = "v1"

DEFAULT_MAX_AGE = 300.0

# Timestamps are signed 64-bit unix seconds.
MIN_TIMESTAMP = -2 ** 63
MAX_TIMESTAMP = 2 ** 63 - 1

Secret = Union[str, bytes]


@dataclass(frozen=True)
class SignatureHeader:
    """
    Parsed Stripe-Signature header.

    Raises InvalidHeader on construction when the timestamp is out of
    range or no v1 signature is present, so a header built by hand is
    held to the same rules as one from parse_header.
    """
    timestamp: int
    signatures: Tuple[Tuple[str, bytes], ...]

    def __post_init__(self):
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, int):
            raise InvalidHeader("timestamp must be an integer")
        if not MIN_TIMESTAMP <= self.timestamp <= MAX_TIMESTAMP:
            raise InvalidHeader("timestamp out of range")
        object.__setattr__(self, "signatures", tuple(self.signatures))
        if not self.digests:
            raise InvalidHeader(f"no {SIGNATURE_SCHEME} signature in header")

    @property
    def digests(self) -> Tuple[bytes, ...]:
        return tuple(
            sig for scheme, sig in self.signatures
            if scheme == SIGNATURE_SCHEME
        )


@dataclass(frozen=True)
class VerificationConfig:
    """
    Signing secrets and freshness window used to verify deliveries.

    Instances are immutable. To rotate secrets at runtime, build a new
    config and hand it to ``WebhookVerifier.rotate``.

    Args:
        secrets: One or more signing secrets (whsec_...). Several secrets
            are accepted while an endpoint secret is being rolled.
        max_age: Reject deliveries signed more than this many seconds ago
        max_future_skew: Reject deliveries signed more than this many
            seconds in the future (default: no limit)
    """
    secrets: Tuple[bytes, ...]
    max_age: float = DEFAULT_MAX_AGE
    max_future_skew: Optional[float] = None

    def __post_init__(self):
        encoded = tuple(
            s.encode("utf-8") if isinstance(s, str) else bytes(s)
            for s in as_secrets(self.secrets)
        )
        if not encoded or not all(encoded):
            raise ValueError("at least one non-empty signing secret is required")
        if self.max_age <= 0:
            raise ValueError("max_age must be positive")
        if self.max_future_skew is not None and self.max_future_skew < 0:
            raise ValueError("max_future_skew must not be negative")
        object.__setattr__(self, "secrets", encoded)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VerificationConfig":
        """
        Build a config from environment variables.

        STRIPE_WEBHOOK_SECRET holds one secret, or several separated by
        commas. STRIPE_WEBHOOK_MAX_AGE and STRIPE_WEBHOOK_MAX_FUTURE_SKEW
        are optional and given in seconds.
        """
        env = os.environ if environ is None else environ

        raw = env.get("STRIPE_WEBHOOK_SECRET", "")
        secrets = tuple(s.strip() for s in raw.split(",") if s.strip())
        if not secrets:
            raise ValueError("STRIPE_WEBHOOK_SECRET is required")

        max_age = float(env.get("STRIPE_WEBHOOK_MAX_AGE") or DEFAULT_MAX_AGE)
        skew = env.get("STRIPE_WEBHOOK_MAX_FUTURE_SKEW")

        return cls(
            secrets=secrets,
            max_age=max_age,
            max_future_skew=float(skew) if skew else None
        )


@dataclass(frozen=True)
class VerifiedEvent:
    """Raw body of a delivery whose signature and freshness were checked."""
    payload: bytes
    timestamp: int

    def decode(self) -> "Event":
        return Event.from_json(self.payload)


@dataclass
class EventData:
    """Resource the event is about."""
    object: Dict[str, Any] = field(default_factory=dict)
    # Changed attributes with their previous values, for *.updated events.
    previous_attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EventRequest:
    """API request that caused the event; empty for automatic events."""
    id: str = ""
    idempotency_key: str = ""


@dataclass
class Event:
    """Decoded Stripe event."""
    id: str
    type: str
    livemode: bool = False
    created: int = 0
    account: str = ""
    pending_webhooks: int = 0
    data: EventData = field(default_factory=EventData)
    request: EventRequest = field(default_factory=EventRequest)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Event":
        """
        Build an Event from a decoded JSON object.

        Raises:
            ValueError: A field has the wrong JSON type
        """
        data = _mapping(raw, "data")

        request = raw.get("request")
        if isinstance(request, str):
            # Pre-2017 API versions send only the request id.
            request = {"id": request}
        else:
            request = _mapping(raw, "request")

        try:
            created = int(raw.get("created") or 0)
            pending_webhooks = int(raw.get("pending_webhooks") or 0)
        except TypeError:
            raise ValueError("event has a non-numeric created or pending_webhooks") from None

        return cls(
            id=raw.get("id") or "",
            type=raw.get("type") or "",
            livemode=bool(raw.get("livemode", False)),
            created=created,
            account=raw.get("account") or "",
            pending_webhooks=pending_webhooks,
            data=EventData(
                object=_mapping(data, "object"),
                previous_attributes=_mapping(data, "previous_attributes")
            ),
            request=EventRequest(
                id=request.get("id") or "",
                idempotency_key=request.get("idempotency_key") or ""
            )
        )

    @classmethod
    def from_json(cls, payload: Union[str, bytes]) -> "Event":
        raw = json.loads(payload)
        if not isinstance(raw, dict):
            raise ValueError("event payload must be a JSON object")
        return cls.from_dict(raw)


def _mapping(raw: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"event field {key!r} must be a JSON object")
    return value


def as_secrets(secrets: Union[Secret, Sequence[Secret]]) -> Tuple[Secret, ...]:
    """Normalize a single secret or a sequence of them into a tuple."""
    if isinstance(secrets, (str, bytes)):
        return (secrets,)
    return tuple(secrets)
