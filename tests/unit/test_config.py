"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from src.app.core.config import Settings

pytestmark = pytest.mark.unit


def test_datastore_configured_requires_url_and_key():
    assert Settings(supabase_url="https://x.test", supabase_anon_key="k").datastore_configured
    assert not Settings(supabase_url="  ", supabase_anon_key="k").datastore_configured
    assert not Settings(supabase_url="https://x.test", supabase_anon_key=None).datastore_configured


def test_supabase_url_is_trimmed():
    assert Settings(supabase_url=" https://x.test/ ").supabase_url == "https://x.test"


def test_email_configured_requires_key_and_sender():
    assert Settings(resend_api_key="re", from_email="a@example.com").email_configured
    assert not Settings(resend_api_key="re", from_email=None).email_configured


@pytest.mark.parametrize("origin", ["app.example.com", "ftp://x.example.com", "https://"])
def test_invalid_app_origin(origin: str):
    with pytest.raises(ValidationError):
        Settings(app_origin=origin)


def test_app_origin_trailing_slash_stripped():
    assert Settings(app_origin="https://app.example.com/").app_origin == "https://app.example.com"


def test_paths_must_be_absolute():
    with pytest.raises(ValidationError):
        Settings(accept_invite_path="accept-invite")
