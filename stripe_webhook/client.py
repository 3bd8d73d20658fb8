"""Minimal Stripe API client."""

import asyncio
import logging
import secrets
import string
import time
from typing import Any, Dict, Optional

import httpx

from . import __version__
from .errors import APIError, RetryExhausted
from .types import StripeErrorBody
from .utils.retry import next_retry_delay

API_BASE = "https://api.stripe.com"
API_VERSION = "2019-11-05"

_BASE36 = string.digits + string.ascii_lowercase


class StripeClient:
    """
    Sends requests to the Stripe API.

    Not a full client library: it handles authentication, idempotency keys,
    Stripe's retry requests and error decoding, and leaves the rest to the
    caller. Stripe expects URL-encoded forms rather than JSON bodies.

    Example:
        >>> client = StripeClient(secret_key="sk_test_...")
        >>> customer = client.request(
        ...     "POST", "/v1/customers", {"email": "jane@example.com"}
        ... )
        >>> print(customer["id"])
    """

    def __init__(
        self,
        secret_key: str,
        api_base: str = API_BASE,
        api_version: str = API_VERSION,
        retry_interval: float = 2.0,
        max_retry: float = 30.0,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize StripeClient.

        Args:
            secret_key: Stripe secret key (sk_...)
            api_base: API base URL (default: https://api.stripe.com)
            api_version: Value for the Stripe-Version header
            retry_interval: Delay between retries in seconds (default: 2.0)
            max_retry: Give up retrying after this many seconds (default: 30.0)
            timeout: Per-request timeout in seconds (default: 10.0)
            transport: Custom httpx transport, mostly for tests
            logger: Custom logger instance
        """
        if not secret_key:
            raise ValueError("secret_key is required")

        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.api_version = api_version
        self.retry_interval = retry_interval
        self.max_retry = max_retry
        self.timeout = timeout
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)

    def request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Send a request (blocking).

        See request_async.
        """
        return asyncio.run(self.request_async(method, path, data))

    async def request_async(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Send a request and decode the JSON response.

        Responses with ``Stripe-Should-Retry: true`` are retried every
        retry_interval seconds, using the same idempotency key.

        Args:
            method: HTTP method
            path: Path such as /v1/customers, or a full https:// URL
            data: Form fields, sent URL-encoded

        Returns:
            Decoded response body

        Raises:
            RetryExhausted: Stripe kept asking for retries for longer
                than max_retry
            APIError: Response status code was 400 or higher
            httpx.HTTPError: Transport failure
        """
        method = method.upper()
        url = path if path.startswith("https://") else self.api_base + path

        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Idempotency-Key": generate_idempotency_key(),
            "Content-Type": "application/x-www-form-urlencoded",
            "Stripe-Version": self.api_version,
            "User-Agent": f"stripe-webhook/{__version__}",
        }

        start = time.monotonic()

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport
        ) as client:
            while True:
                self.logger.debug(f"{method} {url}")
                response = await client.request(method, url, data=data, headers=headers)

                if response.headers.get("Stripe-Should-Retry") != "true":
                    break

                delay = next_retry_delay(
                    time.monotonic() - start,
                    self.retry_interval,
                    self.max_retry
                )
                if delay is None:
                    self.logger.error(f"Giving up on {method} {url} after {self.max_retry}s")
                    raise RetryExhausted(f"retried longer than {self.max_retry}s")

                self.logger.info(f"Stripe asked to retry {method} {url}, retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

        self.logger.debug(response.text)

        if response.status_code >= 400:
            raise APIError(method, url, response.status_code, _error_body(response))

        return response.json()


def generate_idempotency_key() -> str:
    """Random key for the Idempotency-Key header."""
    return "".join(_base36(secrets.randbits(64)) for _ in range(4))


def _base36(n: int) -> str:
    digits = []
    while True:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
        if not n:
            return "".join(reversed(digits))


def _error_body(response: httpx.Response) -> StripeErrorBody:
    try:
        body = response.json()
    except ValueError:
        return StripeErrorBody(message=response.text)

    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return StripeErrorBody()
    return StripeErrorBody.from_dict(error)
