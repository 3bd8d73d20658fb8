"""Stripe webhook verifier."""

import logging
import threading
import time
from typing import Mapping, Optional, Union

from .errors import InvalidSignature, TooNew, TooOld, WebhookError
from .types import Event, SignatureHeader, VerificationConfig, VerifiedEvent
from .utils.signature import parse_header, verify_signature

SIGNATURE_HEADER = "Stripe-Signature"

Payload = Union[bytes, bytearray, str]


def verify_payload(
    payload: Payload,
    header: Union[str, SignatureHeader, None],
    config: VerificationConfig,
    now: Optional[float] = None
) -> VerifiedEvent:
    """
    Verify a webhook delivery.

    Args:
        payload: Request body exactly as received. Never pass a body that
            was decoded and re-encoded: the signature covers the original
            bytes.
        header: Stripe-Signature header value, or an already parsed header
        config: Secrets and freshness window
        now: Current unix time (default: time.time())

    Returns:
        The verified, untouched payload

    Raises:
        InvalidHeader: Header is missing or malformed
        TooOld: Delivery was signed longer ago than config.max_age
        TooNew: Delivery was signed further ahead than config.max_future_skew
        InvalidSignature: No signature matches any configured secret
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    payload = bytes(payload)

    if not isinstance(header, SignatureHeader):
        header = parse_header(header)

    if now is None:
        now = time.time()

    age = now - header.timestamp
    if age > config.max_age:
        raise TooOld(f"webhook signed {age:.0f}s ago, max age is {config.max_age:.0f}s")
    if config.max_future_skew is not None and -age > config.max_future_skew:
        raise TooNew(f"webhook signed {-age:.0f}s in the future")

    if not verify_signature(payload, header, config.secrets):
        raise InvalidSignature("no signature matches the expected signature")

    return VerifiedEvent(payload=payload, timestamp=header.timestamp)


class WebhookVerifier:
    """
    Verifies Stripe webhook deliveries.

    Example:
        >>> verifier = WebhookVerifier(
        ...     VerificationConfig(secrets=("whsec_your_secret",))
        ... )
        >>>
        >>> event = verifier.construct_event(
        ...     body, headers["Stripe-Signature"]
        ... )
        >>> print(event.type)
    """

    def __init__(
        self,
        config: VerificationConfig,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize WebhookVerifier.

        Args:
            config: Signing secrets and freshness window
            logger: Custom logger instance
        """
        if not isinstance(config, VerificationConfig):
            raise ValueError("config must be a VerificationConfig")

        self._config = config
        self._rotate_lock = threading.Lock()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def config(self) -> VerificationConfig:
        """Current configuration snapshot."""
        return self._config

    def rotate(self, config: VerificationConfig) -> VerificationConfig:
        """
        Replace the configuration, e.g. to roll a signing secret.

        Verifications already running keep the snapshot they started with.

        Returns:
            The previous configuration
        """
        if not isinstance(config, VerificationConfig):
            raise ValueError("config must be a VerificationConfig")

        with self._rotate_lock:
            previous, self._config = self._config, config

        self.logger.info(f"Webhook secrets rotated ({len(config.secrets)} active)")
        return previous

    def verify(
        self,
        payload: Payload,
        header: Union[str, SignatureHeader, None],
        now: Optional[float] = None
    ) -> VerifiedEvent:
        """
        Verify a delivery against the current configuration.

        See verify_payload for arguments and errors.
        """
        config = self._config

        try:
            verified = verify_payload(payload, header, config, now=now)
        except WebhookError as e:
            self.logger.warning(f"Rejected webhook: {type(e).__name__}: {e}")
            raise

        self.logger.debug(f"Verified webhook signed at {verified.timestamp}")
        return verified

    def verify_request(
        self,
        payload: Payload,
        headers: Mapping[str, str],
        now: Optional[float] = None
    ) -> VerifiedEvent:
        """
        Verify a delivery given all of its HTTP headers.

        Args:
            payload: Raw request body
            headers: HTTP headers; the Stripe-Signature lookup ignores case
        """
        return self.verify(payload, _get_header(headers, SIGNATURE_HEADER), now=now)

    def construct_event(
        self,
        payload: Payload,
        header: Union[str, SignatureHeader, None],
        now: Optional[float] = None
    ) -> Event:
        """
        Verify a delivery and decode it into an Event.

        Raises:
            WebhookError: Verification failed
            ValueError: Payload is not a JSON object
        """
        return self.verify(payload, header, now=now).decode()


def _get_header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is not None:
        return value

    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return ""
