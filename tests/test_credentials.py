"""Tests for login credential verification."""

import pytest

from sessionvault.services.credentials import StaticCredentialVerifier
from tests.conftest import TEST_PASSWORD, TEST_USER_ID, TEST_USERNAME

pytestmark = pytest.mark.asyncio


async def test_valid_credentials_return_user_id():
    verifier = StaticCredentialVerifier("alice", "correct-horse", 7)
    assert await verifier.verify("alice", "correct-horse") == 7


@pytest.mark.parametrize(
    "username,password",
    [
        ("alice", "wrong"),
        ("bob", "correct-horse"),
        ("alice", ""),
        ("", ""),
        ("alice", "correct-horse "),
    ],
)
async def test_invalid_credentials_return_none(username, password):
    verifier = StaticCredentialVerifier("alice", "correct-horse", 7)
    assert await verifier.verify(username, password) is None


async def test_empty_configured_password_disables_login():
    """Test that no password can match when none is configured."""
    verifier = StaticCredentialVerifier("alice", "", 7)
    assert await verifier.verify("alice", "") is None


async def test_from_settings(settings):
    verifier = StaticCredentialVerifier.from_settings(settings)
    assert await verifier.verify(TEST_USERNAME, TEST_PASSWORD) == TEST_USER_ID
