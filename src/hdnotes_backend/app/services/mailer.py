"""
OTP email delivery.

Sends the code over SMTP (STARTTLS). When SMTP credentials are missing the
code can be logged instead, but only with OTP_DEBUG_LOG switched on.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable

from ..core.config import Settings
from ..core.errors import DependencyError
from ..core.trace import auth_trace, mask_email

logger = logging.getLogger(__name__)

SUBJECT = "Your HD Notes OTP Code"
SMTP_TIMEOUT_SEC = 10.0


def build_otp_message(sender: str, to: str, otp: str, ttl_minutes: int) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = SUBJECT
    msg["From"] = sender
    msg["To"] = to
    msg.set_content(f"Your OTP is {otp}. It will expire in {ttl_minutes} minutes.")
    msg.add_alternative(
        f"<p>Your OTP is <b>{otp}</b>. It will expire in {ttl_minutes} minutes.</p>",
        subtype="html",
    )
    return msg


class OtpMailer:
    def __init__(self, settings: Settings, smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP):
        self.settings = settings
        self._smtp_factory = smtp_factory

    def send_otp(self, to: str, otp: str) -> None:
        s = self.settings
        if not s.smtp_configured:
            if s.otp_debug_log:
                logger.warning("DEBUG OTP for %s: %s", to, otp)
                return
            logger.error("SMTP credentials are missing and OTP_DEBUG_LOG is off; cannot deliver OTP")
            raise DependencyError("Failed to send OTP")

        msg = build_otp_message(s.mail_from, to, otp, s.otp_ttl_minutes)
        try:
            with self._smtp_factory(s.smtp_host, s.smtp_port, timeout=SMTP_TIMEOUT_SEC) as smtp:
                smtp.starttls()
                smtp.login(s.smtp_user, s.smtp_pass)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as ex:
            logger.error("SMTP delivery to %s failed: %s", mask_email(to), ex)
            raise DependencyError("Failed to send OTP") from ex

        auth_trace("mail.otp.sent", to=mask_email(to), host=s.smtp_host)
