import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage

from .config import Settings

_logger = logging.getLogger(__name__)

EMAIL_OUTBOX: list[tuple[str, str, str]] = []
# recipients listed here fail delivery while testing
FAILING_RECIPIENTS: set[str] = set()


@dataclass(frozen=True)
class MailResult:
    recipient: str
    delivered: bool
    error: str | None = None


@dataclass
class BatchMailResult:
    results: list[MailResult] = field(default_factory=list)

    @property
    def delivered(self) -> list[str]:
        return [r.recipient for r in self.results if r.delivered]

    @property
    def failures(self) -> list[MailResult]:
        return [r for r in self.results if not r.delivered]

    @property
    def ok(self) -> bool:
        return not self.failures


def _build_message(settings: Settings, to_email: str, subject: str, text: str, html: str | None):
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f'"{settings.mail_sender_name}" <{settings.smtp_user or "noreply@localhost"}>'
    msg["To"] = to_email
    msg.set_content(text)
    if html:
        msg.add_alternative(html, subtype="html")
    return msg


def send_email(
    settings: Settings,
    to_email: str,
    subject: str,
    text: str,
    html: str | None = None,
) -> MailResult:
    """Deliver one message and report the outcome instead of raising."""

    if settings.testing:
        if to_email in FAILING_RECIPIENTS:
            return MailResult(to_email, False, "Recipient rejected")
        EMAIL_OUTBOX.append((to_email, subject, text))
        return MailResult(to_email, True)
    if not settings.smtp_host:
        _logger.warning("SMTP host not configured; dropping mail to %s", to_email)
        return MailResult(to_email, False, "SMTP not configured")
    msg = _build_message(settings, to_email, subject, text, html)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as s:
            s.starttls()
            if settings.smtp_user and settings.smtp_pass:
                s.login(settings.smtp_user, settings.smtp_pass)
            s.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        _logger.error("Mail to %s failed: %s", to_email, exc)
        return MailResult(to_email, False, str(exc))
    return MailResult(to_email, True)


def send_bulk_email(
    settings: Settings,
    recipients: list[str],
    subject: str,
    text: str,
    html: str | None = None,
) -> BatchMailResult:
    """Send the same message to each recipient separately, collecting every failure."""

    batch = BatchMailResult()
    for recipient in dict.fromkeys(r for r in recipients if r):
        batch.results.append(send_email(settings, recipient, subject, text, html))
    if batch.failures:
        _logger.warning(
            "Bulk mail '%s': %d of %d deliveries failed",
            subject,
            len(batch.failures),
            len(batch.results),
        )
    return batch
