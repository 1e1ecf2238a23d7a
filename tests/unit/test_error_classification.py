"""Tests for mapping data store failures to application errors."""

import pytest

from src.app.core.datastore import (
    TRANSPORT_ERROR_CODE,
    RpcError,
    RpcErrorKind,
    classify_rpc_error,
)
from src.app.core.exceptions import (
    Forbidden,
    InviteCreationFailed,
    InviteGone,
    Unauthenticated,
    UpstreamError,
    app_error_for_rpc,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (RpcError("x", hint="not_authenticated"), RpcErrorKind.UNAUTHENTICATED),
        (RpcError("x", hint="invite_expired"), RpcErrorKind.GONE),
        (RpcError("x", hint="INVITE_REVOKED"), RpcErrorKind.GONE),
        (RpcError("x", code="28000"), RpcErrorKind.UNAUTHENTICATED),
        (RpcError("x", code="42501"), RpcErrorKind.FORBIDDEN),
        (RpcError("x", code="P0002"), RpcErrorKind.GONE),
        (RpcError("x", code="42P01"), RpcErrorKind.UNDEFINED_RELATION),
        (RpcError("x", status=401), RpcErrorKind.UNAUTHENTICATED),
        (RpcError("x", status=403), RpcErrorKind.FORBIDDEN),
        (RpcError("not_authenticated"), RpcErrorKind.UNAUTHENTICATED),
        (RpcError("Invite has expired"), RpcErrorKind.GONE),
        (RpcError("token already used"), RpcErrorKind.GONE),
        (RpcError("new row violates row level security policy"), RpcErrorKind.FORBIDDEN),
        (RpcError("duplicate key value"), RpcErrorKind.OTHER),
    ],
)
def test_classification(error: RpcError, kind: RpcErrorKind):
    assert classify_rpc_error(error) is kind


def test_structured_code_wins_over_message():
    error = RpcError("invalid input syntax", code="42501", status=400)

    assert classify_rpc_error(error) is RpcErrorKind.FORBIDDEN


def test_hint_wins_over_code():
    error = RpcError("nope", code="42501", hint="invite_used")

    assert classify_rpc_error(error) is RpcErrorKind.GONE


def test_transport_error_is_never_reclassified():
    error = RpcError("Data store request failed: ReadTimeout expired", code=TRANSPORT_ERROR_CODE)

    assert classify_rpc_error(error) is RpcErrorKind.OTHER
    assert isinstance(app_error_for_rpc(error, fallback=InviteCreationFailed), InviteCreationFailed)


@pytest.mark.parametrize(
    ("error", "expected", "status"),
    [
        (RpcError("x", code="28000"), Unauthenticated, 401),
        (RpcError("x", code="42501"), Forbidden, 403),
        (RpcError("x", hint="invite_used"), InviteGone, 410),
        (RpcError("duplicate key value"), UpstreamError, 400),
    ],
)
def test_app_error_for_rpc_when_redeeming(error: RpcError, expected: type, status: int):
    app_error = app_error_for_rpc(error, redeeming=True)

    assert type(app_error) is expected
    assert app_error.status_code == status
    assert app_error.message == error.message


def test_from_rpc_passes_upstream_status_and_code():
    error = RpcError("not authorized", code="42501", status=403)

    app_error = UpstreamError.from_rpc(error, pass_status=True)

    assert app_error.status_code == 403
    assert app_error.code == "42501"


def test_from_rpc_without_upstream_status_defaults_to_400():
    app_error = UpstreamError.from_rpc(RpcError("boom"), pass_status=True)

    assert app_error.status_code == 400
    assert app_error.code == "upstream_error"


@pytest.mark.parametrize(
    "error",
    [
        RpcError("x", hint="invite_used"),
        RpcError("x", code="P0002"),
        RpcError("invalid email address", code="P0001", status=400),
        RpcError('invalid input syntax for type uuid: "abc"', code="22P02", status=400),
    ],
)
def test_gone_looking_errors_outside_redemption_use_fallback(error: RpcError):
    assert type(app_error_for_rpc(error)) is UpstreamError

    app_error = app_error_for_rpc(error, fallback=InviteCreationFailed)

    assert type(app_error) is InviteCreationFailed
    assert app_error.status_code == 400
    assert app_error.message == error.message
