"""Send job-change alert emails (plain text + HTML) over SMTP."""
from __future__ import annotations

import html
import re
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Callable

from jobcheck.config import get_email_recipients, get_env
from jobcheck.errors import NotificationError
from jobcheck.log import get_logger
from jobcheck.models import ChangeAlert, NotificationResult
from jobcheck.retry import retry

log = get_logger(__name__)

DEFAULT_FROM = "JobCheck <jobcheck@localhost>"


@dataclass
class SmtpSettings:
    host: str
    port: int
    user: str
    password: str
    from_addr: str


def _smtp_settings(env_getter: Callable[[str], str]) -> SmtpSettings:
    host = env_getter("SMTP_HOST")
    user = env_getter("SMTP_USER")
    password = env_getter("SMTP_PASSWORD")
    if not all([host, user, password]):
        raise NotificationError("SMTP not configured (set SMTP_HOST, SMTP_USER, SMTP_PASSWORD in .env)")
    try:
        port = int(env_getter("SMTP_PORT") or 587)
    except ValueError:
        port = 587
    from_addr = env_getter("EMAIL_FROM") or user or DEFAULT_FROM
    return SmtpSettings(host, port, user, password, from_addr)


def resolve_recipients(
    person_recipients: list[str] | None,
    fallback: list[str] | None = None,
) -> list[str]:
    """Person-specific addresses when any are valid, else the global list."""
    valid = [e.strip() for e in person_recipients or [] if e and "@" in e.strip()]
    if valid:
        return valid
    return list(fallback if fallback is not None else get_email_recipients())


def _position(role: str | None, company: str | None) -> str:
    return f"{role or 'Unknown'} at {company or 'Unknown'}"


def build_alert_markdown(alert: ChangeAlert) -> str:
    lines: list[str] = [
        "# Job Change Alert",
        "",
        f"## {alert.person_name} has a new position!",
        "",
        f"**Previous:** {_position(alert.previous_role, alert.previous_company)}",
        "",
        f"**New:** {_position(alert.new_role, alert.new_company)}",
        "",
        f"**Confidence Level:** {alert.confidence}%",
        "",
    ]
    if alert.evidence:
        lines.append("### Evidence")
        lines.append("")
        for i, e in enumerate(alert.evidence, 1):
            source = f" [View source]({e.source_link})" if e.source_link else ""
            lines.append(f"- **Source {i}:** {e.snippet_excerpt or 'N/A'}{source}")
        lines.append("")
    lines.append("---")
    lines.append("")
    lines.append("This alert was automatically generated by JobCheck")
    lines.append(f"You're receiving this because you're monitoring {alert.person_name}")
    return "\n".join(lines)


def _md_to_html(md: str) -> str:
    """Lightweight markdown-to-HTML for the alert email."""
    html_parts: list[str] = []
    for line in md.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("### "):
            html_parts.append(f'<h3 style="margin:12px 0 4px;color:#1a1a1a">{_inline(stripped[4:])}</h3>')
            continue
        if stripped.startswith("## "):
            html_parts.append(f'<h2 style="margin:18px 0 6px;color:#2c3e50">{_inline(stripped[3:])}</h2>')
            continue
        if stripped.startswith("# "):
            html_parts.append(
                f'<h1 style="margin:0 0 8px;padding:16px;background:#4CAF50;color:#fff">{_inline(stripped[2:])}</h1>'
            )
            continue
        if stripped == "---":
            html_parts.append('<hr style="border:none;border-top:1px solid #e0e0e0;margin:16px 0">')
            continue
        if stripped.startswith("- "):
            html_parts.append(
                f'<div style="margin:6px 0;padding:8px;background:#fff3cd;border-radius:3px">{_inline(stripped[2:])}</div>'
            )
            continue
        html_parts.append(f"<p style='margin:4px 0'>{_inline(stripped)}</p>")
    return "\n".join(html_parts)


def _inline(text: str) -> str:
    """Escape, then convert inline markdown (bold, links) to HTML."""
    text = html.escape(text, quote=True)
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r'<a href="\2" style="color:#1a73e8">\1</a>', text)
    return text


def build_message(alert: ChangeAlert, from_addr: str, to_addr: str) -> MIMEMultipart:
    body = build_alert_markdown(alert)
    html_body = f"""<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:16px;color:#333">
{_md_to_html(body)}
</div>"""

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"Job Change Alert: {alert.person_name} has a new position"
    msg["From"] = from_addr
    msg["To"] = to_addr
    msg["Message-ID"] = make_msgid(domain="jobcheck")
    msg.attach(MIMEText(body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


@retry(max_attempts=3, base_delay=3.0, retryable=(smtplib.SMTPException, OSError))
def _smtp_send(settings: SmtpSettings, msg: MIMEMultipart) -> None:
    with smtplib.SMTP(settings.host, settings.port) as server:
        server.starttls()
        server.login(settings.user, settings.password)
        try:
            server.sendmail(settings.from_addr, [msg["To"]], msg.as_string())
        except smtplib.SMTPRecipientsRefused as exc:
            # refused addresses are final
            raise NotificationError(f"{msg['To']} refused by server") from exc


def send_change_alert(
    alert: ChangeAlert,
    *,
    env_getter: Callable[[str], str] = get_env,
    fallback_recipients: list[str] | None = None,
) -> NotificationResult:
    """Mail *alert* to each recipient separately.

    ``success`` is true when at least one message went out; addresses that
    failed are listed in ``error`` either way.
    """
    if fallback_recipients is None:
        fallback_recipients = get_email_recipients(env_getter)
    recipients = resolve_recipients(alert.recipients, fallback_recipients)
    if not recipients:
        msg = (
            "No valid email addresses for this contact (check format)."
            if alert.recipients
            else "No recipients configured for this contact, and no EMAIL_RECIPIENTS fallback set."
        )
        log.warning(msg)
        return NotificationResult(success=False, error=msg)

    try:
        settings = _smtp_settings(env_getter)
    except NotificationError as exc:
        log.error("Alert email for %s not sent: %s", alert.person_name, exc)
        return NotificationResult(success=False, error=str(exc))

    email_ids: list[str] = []
    failures: list[str] = []
    for to_addr in recipients:
        msg = build_message(alert, settings.from_addr, to_addr)
        try:
            _smtp_send(settings, msg)
        except (NotificationError, smtplib.SMTPException, OSError) as exc:
            log.error("Alert email for %s to %s failed: %s", alert.person_name, to_addr, exc)
            failures.append(f"{to_addr}: {exc}"[:150])
            continue
        email_ids.append(msg["Message-ID"])

    log.info("Sent %d of %d alert email(s) for %s", len(email_ids), len(recipients), alert.person_name)
    return NotificationResult(
        success=bool(email_ids),
        email_ids=email_ids,
        error="; ".join(failures) or None,
    )
