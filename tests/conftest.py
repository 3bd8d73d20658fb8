"""Shared fixtures for stripe_webhook tests."""

import pytest

from stripe_webhook.types import VerificationConfig

NOW = 1_700_000_000


@pytest.fixture()
def now() -> int:
    return NOW


@pytest.fixture()
def secret() -> str:
    return "whsec_test_secret"


@pytest.fixture()
def config(secret) -> VerificationConfig:
    return VerificationConfig(secrets=(secret,))


@pytest.fixture()
def payload() -> bytes:
    return b'{"id":"evt_1","type":"charge.succeeded","data":{"object":{"id":"ch_1"}}}'
