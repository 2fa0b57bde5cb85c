"""
Email Service
=============
Sends notification emails over SMTP (aiosmtplib):
- Password reset and email change codes
- Announcement notices to students
- Coordinator message notices (direct and group)
- Document review results

Sending never raises: failures are logged and reported as False so that the
request that triggered the email still succeeds.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

import aiosmtplib

from ojt_monitoring.core.config import get_settings
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.utils import email_templates


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        settings = get_settings()
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.smtp_user
        self.from_name = settings.email_from_name
        self.frontend_url = settings.frontend_url.rstrip("/")
        self.otp_expire_minutes = settings.otp_expire_minutes

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        bcc: Optional[List[str]] = None,
    ) -> bool:
        """
        Send an email asynchronously.

        When bcc is given the message is addressed to the sender and delivered
        to every bcc recipient. Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning(f"[Email] Email service not configured, skipping '{subject}'")
            return False

        recipients = [to_email] + list(bcc or [])

        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                recipients=recipients,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True,
            )

            logger.info(f"[Email/SMTP] Sent '{subject}' to {len(recipients)} recipient(s)")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send '{subject}' to {to_email}: {e}")
            return False

    async def send_password_reset_code(self, user: dict, code: str) -> bool:
        html = email_templates.password_reset_email(user, code, self.otp_expire_minutes)
        text = f"Your password reset code is {code}. It expires in {self.otp_expire_minutes} minutes."
        return await self.send_email(user["email"], "Password Reset Code", html, text)

    async def send_email_change_code(self, user: dict, new_email: str, code: str) -> bool:
        html = email_templates.email_change_email(user, code, new_email, self.otp_expire_minutes)
        text = f"Your email verification code is {code}. It expires in {self.otp_expire_minutes} minutes."
        return await self.send_email(new_email, "Verify Your New Email", html, text)

    async def send_announcement_notification(self, announcement: dict, author: dict, recipients: List[str]) -> bool:
        if not recipients:
            logger.info("[Email] No students to notify about announcement")
            return False
        html = email_templates.announcement_email(announcement, author, self.frontend_url)
        subject = f"New Announcement: {announcement.get('title', '')}"
        return await self.send_email(self.from_email, subject, html, bcc=recipients)

    async def send_message_notification(self, sender: dict, receiver: dict, message: dict) -> bool:
        html = email_templates.direct_message_email(sender, receiver, message, self.frontend_url)
        subject = f"New message from {email_templates.full_name(sender)}"
        return await self.send_email(receiver["email"], subject, html)

    async def send_group_message_notification(
        self, sender: dict, conversation: dict, message: dict, recipients: List[str]
    ) -> bool:
        if not recipients:
            return False
        html = email_templates.group_message_email(sender, conversation, message, self.frontend_url)
        subject = f"New message in {conversation.get('name') or 'your group'}"
        return await self.send_email(self.from_email, subject, html, bcc=recipients)

    async def send_document_status_notification(self, student: dict, document: dict) -> bool:
        html = email_templates.document_status_email(student, document, self.frontend_url)
        subject = f"Document {document.get('status', 'updated')}: {document.get('documentName', '')}"
        return await self.send_email(student["email"], subject, html)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get singleton email service instance"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
