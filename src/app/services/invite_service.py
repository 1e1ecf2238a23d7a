"""Organization invite service.

Invite state lives in the data store. Each operation here is one procedure
call made as the caller; redemption is exactly-once because the store
transitions the token, not because of anything checked in this process.
"""

from typing import Any

from src.app.core.config import Settings
from src.app.core.datastore import AuthUser, DataStoreClient, RpcError
from src.app.core.exceptions import (
    IntegrityError,
    InviteCreationFailed,
    MissingToken,
    UpstreamError,
    app_error_for_rpc,
)
from src.app.core.logging import get_logger, token_suffix
from src.app.core.notifications import send_invite_email
from src.app.core.urls import build_accept_url
from src.app.models import AcceptedInvite, InviteRecord, MembershipRole
from src.app.schemas.invite import (
    CreateInviteRequest,
    CreateInviteResponse,
    InviteSummary,
    MailResult,
    ResendInviteRequest,
    ResendInviteResponse,
)
from src.app.services.membership_service import MembershipService

logger = get_logger(__name__)

CREATE_INVITE_RPC = "create_invite"
ACCEPT_INVITE_RPC = "accept_invite"
RESEND_INVITE_RPC = "resend_invite"
REVOKE_INVITE_RPC = "revoke_invite"


def _first_row(data: Any) -> Any:
    if isinstance(data, list):
        return data[0] if data else None
    return data


class InviteService:
    """Service for the invite lifecycle: issue, redeem, resend, revoke."""

    def __init__(
        self,
        datastore: DataStoreClient,
        membership_service: MembershipService,
        settings: Settings,
    ):
        self.datastore = datastore
        self.membership_service = membership_service
        self.settings = settings

    def accept_url_for(self, origin: str, token: str) -> str:
        return build_accept_url(origin, token, self.settings.accept_invite_path)

    async def _deliver(self, to: str, accept_url: str, *, resent: bool = False) -> MailResult:
        return await send_invite_email(to, accept_url, resent=resent)

    async def create_invite(
        self,
        caller: AuthUser,
        request: CreateInviteRequest,
        origin: str,
    ) -> CreateInviteResponse:
        """Create an invite and optionally email its accept link.

        The caller must be ADMIN of the organization. Email delivery is best
        effort and reported in the response; it never fails the operation.

        Raises:
            Forbidden: caller is not an ADMIN of the organization
            InviteCreationFailed: the procedure rejected the invite
            IntegrityError: the procedure succeeded without returning a token
        """
        await self.membership_service.require_admin(caller.id, request.org_id)

        try:
            data = await self.datastore.rpc(
                CREATE_INVITE_RPC,
                {
                    "p_org": request.org_id,
                    "p_email": request.email,
                    "p_role": request.role.value,
                },
            )
        except RpcError as e:
            logger.warning(
                "Invite creation rejected",
                org_id=request.org_id,
                error=e.message,
                code=e.code,
            )
            raise app_error_for_rpc(e, fallback=InviteCreationFailed) from e

        row = _first_row(data)
        record = InviteRecord.model_validate(row) if isinstance(row, dict) else None
        if record is None or not record.token:
            logger.error("Invite creation returned no token", org_id=request.org_id)
            raise IntegrityError("Invite resultaat ongeldig")

        accept_url = self.accept_url_for(origin, record.token)

        if request.send_email:
            mail = await self._deliver(request.email, accept_url)
        else:
            mail = MailResult.disabled()

        logger.info(
            "Invite created",
            org_id=request.org_id,
            email=request.email,
            role=request.role.value,
            token_suffix=token_suffix(record.token),
            email_sent=mail.sent,
            email_reason=mail.reason.value if mail.reason else None,
        )

        return CreateInviteResponse(
            accept_url=accept_url,
            invite=InviteSummary(
                id=record.id,
                email=record.email or request.email,
                role=MembershipRole.normalize(record.role) or request.role,
                expires_at=record.expires_at,
            ),
            email=mail,
        )

    async def accept_invite(self, token: str | None) -> AcceptedInvite:
        """Redeem ``token`` for the caller.

        Invalid, expired, revoked and consumed tokens are client errors (410),
        never server errors.

        Raises:
            MissingToken: no token given
            InviteGone: the token can no longer be redeemed
            IntegrityError: the procedure succeeded without identifying the membership
        """
        if token is None or not token.strip():
            raise MissingToken()
        token = token.strip()

        try:
            data = await self.datastore.rpc(ACCEPT_INVITE_RPC, {"p_token": token})
        except RpcError as e:
            logger.info(
                "Invite redemption rejected",
                token_suffix=token_suffix(token),
                error=e.message,
                code=e.code,
            )
            raise app_error_for_rpc(e, redeeming=True) from e

        row = _first_row(data)
        if isinstance(row, str):
            accepted = AcceptedInvite(membership_id=row)
        elif isinstance(row, dict):
            accepted = AcceptedInvite.model_validate(row)
        else:
            accepted = AcceptedInvite()

        if not accepted.org_id and not accepted.membership_id:
            logger.error("Invite redemption returned no membership", token_suffix=token_suffix(token))
            raise IntegrityError()

        logger.info(
            "Invite accepted",
            org_id=accepted.org_id,
            membership_id=accepted.membership_id,
            role=accepted.role,
        )
        return accepted

    async def resend_invite(self, request: ResendInviteRequest, origin: str) -> ResendInviteResponse:
        """Re-issue the pending invite for (organization, email).

        Authorization is left entirely to the procedure; any rejection is a 400
        carrying the procedure's message.
        """
        try:
            data = await self.datastore.rpc(
                RESEND_INVITE_RPC,
                {"p_org_id": request.org_id, "p_email": request.email},
            )
        except RpcError as e:
            logger.warning(
                "Invite resend rejected", org_id=request.org_id, error=e.message, code=e.code
            )
            raise UpstreamError.from_rpc(e) from e

        row = _first_row(data)
        token = row.get("token") if isinstance(row, dict) else row
        if not token or not isinstance(token, str):
            logger.error("Invite resend returned no token", org_id=request.org_id)
            raise IntegrityError()

        accept_url = self.accept_url_for(origin, token)
        if request.send_email:
            mail = await self._deliver(request.email, accept_url, resent=True)
        else:
            mail = MailResult.disabled()

        logger.info(
            "Invite resent",
            org_id=request.org_id,
            token_suffix=token_suffix(token),
            email_sent=mail.sent,
        )
        return ResendInviteResponse(token=token, emailed=mail.sent, accept_url=accept_url, email=mail)

    async def revoke_invite(self, token: str) -> None:
        """Revoke a pending invite; authorization is the procedure's."""
        try:
            await self.datastore.rpc(REVOKE_INVITE_RPC, {"p_token": token})
        except RpcError as e:
            logger.warning(
                "Invite revoke rejected",
                token_suffix=token_suffix(token),
                error=e.message,
                code=e.code,
            )
            raise UpstreamError.from_rpc(e) from e

        logger.info("Invite revoked", token_suffix=token_suffix(token))
