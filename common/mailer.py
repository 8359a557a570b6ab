"""
Storefront - Mail Sender
=========================
Password reset codes through the Resend API.
With no RESEND_API_KEY configured the message is only logged (stub mode).
"""

import logging
from typing import Dict

import resend

from config.settings import RESEND_API_KEY, MAIL_FROM

logger = logging.getLogger("storefront.mail")


class MailSender:

    def __init__(self, api_key: str = None, sender: str = None):
        self.api_key = (api_key if api_key is not None else RESEND_API_KEY).strip()
        self.sender = sender or MAIL_FROM

    def send(self, to: str, subject: str, text: str) -> bool:
        """Send a message. Returns True on success, False on any failure."""
        if not self.api_key:
            logger.info(f"[EMAIL STUB] To {to}: {subject}")
            return True

        payload: Dict[str, object] = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "text": text,
        }

        previous_api_key = getattr(resend, "api_key", None)
        resend.api_key = self.api_key
        try:
            response = resend.Emails.send(payload)
        except Exception as e:
            logger.error(f"Email send failed to {to}: {e}")
            return False
        finally:
            resend.api_key = previous_api_key

        if not isinstance(response, dict) or not response.get("id"):
            logger.error(f"Email send failed to {to}: {response}")
            return False

        logger.info(f"Email sent to {to}: {subject} (id={response['id']})")
        return True

    def send_otp(self, to: str, otp: str, expire_minutes: int) -> bool:
        return self.send(
            to,
            "OTP for password reset",
            f"Your OTP is {otp}. This OTP will expire in {expire_minutes} minutes.",
        )


mail_sender = MailSender()
