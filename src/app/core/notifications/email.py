"""Email client using Resend API."""

import asyncio
import html
from concurrent.futures import ThreadPoolExecutor

import resend

from src.app.core.config import get_settings
from src.app.core.logging import get_logger
from src.app.schemas.invite import MailResult

logger = get_logger(__name__)

# Thread pool for email sending with timeout support
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

# Shared email styles
_BODY_STYLE = "font-family: system-ui, 'Segoe UI', Arial, sans-serif; color: #1c2b49;"
_BUTTON_STYLE = (
    "display: inline-block; background: #2563eb; color: #fff; padding: 10px 16px; "
    "border-radius: 8px; text-decoration: none;"
)
_MUTED_STYLE = "color: #4b5563; font-size: 13px;"


async def send_invite_email(to: str, accept_url: str, *, resent: bool = False) -> MailResult:
    """Send an organization invite email.

    Never raises: a delivery problem is reported in the returned MailResult
    so the invite itself stays valid.

    Args:
        to: Recipient email address
        accept_url: Link that redeems the invite token
        resent: Word the mail as a repeated invitation

    Returns:
        MailResult with reason ``missing_env`` or ``api_error`` on failure
    """
    settings = get_settings()

    if not settings.email_configured:
        logger.warning(
            "RESEND_API_KEY or FROM_EMAIL not set - invite email not sent",
            email_type="invite",
        )
        return MailResult.missing_env()

    resend.api_key = settings.resend_api_key
    brand = settings.email_brand

    def _send() -> None:
        resend.Emails.send(
            {
                "from": settings.from_email,
                "to": [to],
                "subject": f"{brand} - {'Nieuwe uitnodiging' if resent else 'Uitnodiging'}",
                "html": _get_invite_email_html(brand, accept_url, resent),
                "text": _get_invite_email_text(brand, accept_url, resent),
            }
        )

    loop = asyncio.get_running_loop()
    try:
        # The SDK blocks; run it on the email pool with a timeout
        await asyncio.wait_for(
            loop.run_in_executor(_email_executor, _send),
            timeout=settings.email_send_timeout_seconds,
        )
        logger.info("Invite email sent", resent=resent)
        return MailResult.delivered()
    except TimeoutError:
        logger.error("Email send timed out", timeout=settings.email_send_timeout_seconds)
        return MailResult.api_error()
    except Exception as e:
        status = getattr(e, "code", None)
        logger.error("Failed to send invite email", error=str(e), status=status)
        return MailResult.api_error(status if isinstance(status, int) else None)


def _get_invite_email_html(brand: str, accept_url: str, resent: bool) -> str:
    """Generate HTML content for the invite email."""
    safe_brand = html.escape(brand)
    safe_url = html.escape(accept_url, quote=True)
    intro = (
        "Er staat opnieuw een uitnodiging voor je klaar."
        if resent
        else "Je bent uitgenodigd om lid te worden."
    )
    return f"""<!DOCTYPE html>
<html lang="nl">
<head>
    <meta charset="utf-8">
</head>
<body style="{_BODY_STYLE}">
    <h2>{safe_brand}</h2>
    <p>{intro} Klik op de knop hieronder om de uitnodiging te accepteren.</p>
    <p><a href="{safe_url}" style="{_BUTTON_STYLE}">Uitnodiging accepteren</a></p>
    <p style="{_MUTED_STYLE}">Werkt de knop niet? Kopieer dan deze link:<br>{safe_url}</p>
</body>
</html>"""


def _get_invite_email_text(brand: str, accept_url: str, resent: bool) -> str:
    intro = "Je bent opnieuw uitgenodigd" if resent else "Je bent uitgenodigd"
    return f"{intro} voor {brand}.\n\nAccepteer uitnodiging: {accept_url}\n"
