"""
Email service untuk CheckMate Auth.
Mengirim kode OTP dan notifikasi keamanan lewat SMTP.
"""

from datetime import datetime
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import asyncio
from functools import partial
from pathlib import Path

import jinja2

from checkmate_auth.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"


class EmailService:
    """
    Service class untuk email operations.
    Menangani template rendering dan email sending.
    """

    def __init__(self, config: Optional[Settings] = None):
        """Initialize email service dengan template engine."""
        self.config = config or default_settings
        self.template_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=jinja2.select_autoescape(["html"])
        )

        # Base context untuk semua email
        self.base_context = {
            "app_name": self.config.APP_NAME,
            "support_email": self.config.EMAIL_FROM_ADDRESS,
            "year": datetime.now().year
        }

    def render(self, template_name: str, **context) -> str:
        """Render template email dengan base context."""
        template = self.template_env.get_template(template_name)
        return template.render(**self.base_context, **context)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Send email menggunakan SMTP.

        Args:
            to_email: Recipient email
            subject: Email subject
            html_body: HTML content
            text_body: Plain text content (optional)

        Returns:
            True jika email berhasil dikirim
        """
        # Run in thread pool karena smtplib blocking
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            partial(
                self._send_email_sync,
                to_email=to_email,
                subject=subject,
                html_body=html_body,
                text_body=text_body
            )
        )

    def _send_email_sync(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Synchronous email sending implementation.

        Returns:
            True jika berhasil, False jika SMTP gagal
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.config.EMAIL_FROM_NAME} <{self.config.EMAIL_FROM_ADDRESS}>"
        msg["To"] = to_email

        if text_body:
            msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            if self.config.SMTP_SSL:
                server = smtplib.SMTP_SSL(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=30)
            else:
                server = smtplib.SMTP(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=30)
                if self.config.SMTP_TLS:
                    server.starttls()

            try:
                if self.config.SMTP_USER and self.config.SMTP_PASSWORD:
                    server.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD)
                server.send_message(msg, to_addrs=[to_email])
            finally:
                server.quit()

            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending email to {to_email}: {e}")
            return False

    async def send_otp_email(self, email: str, name: str, code: str) -> bool:
        """
        Kirim kode OTP login.

        Args:
            email: Alamat tujuan
            name: Nama user
            code: Kode OTP plaintext

        Returns:
            True jika berhasil dikirim
        """
        context = {
            "name": name,
            "code": code,
            "expires_minutes": self.config.OTP_EXPIRE_MINUTES
        }
        return await self.send_email(
            to_email=email,
            subject=f"{self.config.APP_NAME} - Your verification code",
            html_body=self.render("otp.html", **context),
            text_body=self.render("otp.txt", **context)
        )
