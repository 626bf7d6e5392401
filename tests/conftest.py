"""
Pytest configuration for PayGuard tests
"""

import pytest
from fastapi.testclient import TestClient

from main import app
from payguard.api.webhooks import get_authenticator, get_credential_store
from payguard.config.settings import SecuritySettings, get_settings
from payguard.services.credential_store import InMemoryCredentialStore
from payguard.utils.encryption import SecretCodec
from payguard.utils.webhook_verification import WebhookAuthenticator

from tests.utils import (
    OTHER_MASTER_SECRET,
    TEST_EPAYCO_CUSTOMER_ID,
    TEST_EPAYCO_KEY,
    TEST_EVOLUTION_SECRET,
    TEST_MASTER_SECRET,
    TEST_META_APP_SECRET,
    TEST_META_VERIFY_TOKEN,
    TEST_ORG_ID,
    TEST_ORG_SLUG,
    TEST_WOMPI_INTEGRITY_SECRET,
)


@pytest.fixture
def codec():
    """Codec with the test master secret"""
    return SecretCodec(TEST_MASTER_SECRET)


@pytest.fixture
def other_codec():
    """Codec with a different master secret"""
    return SecretCodec(OTHER_MASTER_SECRET)


@pytest.fixture
def authenticator(codec):
    return WebhookAuthenticator(codec=codec)


@pytest.fixture
def test_settings():
    return SecuritySettings(
        encryption_key=TEST_MASTER_SECRET,
        meta_app_secret=TEST_META_APP_SECRET,
        meta_verify_token=TEST_META_VERIFY_TOKEN,
        evolution_webhook_secret=TEST_EVOLUTION_SECRET,
        environment="test",
    )


@pytest.fixture
def credential_store(codec):
    """Store seeded with ePayco and Wompi credentials for the test org"""
    store = InMemoryCredentialStore(codec=codec)
    store.save_credential(
        org_slug=TEST_ORG_SLUG,
        organization_id=TEST_ORG_ID,
        provider="epayco",
        public_key="pub_epayco_test",
        integrity_secret=TEST_EPAYCO_CUSTOMER_ID,
        encryption_key=TEST_EPAYCO_KEY,
    )
    store.save_credential(
        org_slug=TEST_ORG_SLUG,
        organization_id=TEST_ORG_ID,
        provider="wompi",
        public_key="pub_test_wompi",
        private_key="prv_test_wompi",
        integrity_secret=TEST_WOMPI_INTEGRITY_SECRET,
    )
    return store


@pytest.fixture
def client(authenticator, credential_store, test_settings):
    """Test client with storage, codec and settings overridden"""
    app.dependency_overrides[get_authenticator] = lambda: authenticator
    app.dependency_overrides[get_credential_store] = lambda: credential_store
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
