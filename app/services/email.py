import logging
import os
import smtplib
from datetime import datetime
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from app.config import settings
from app.models.payroll import Payroll

logger = logging.getLogger(__name__)

Attachment = Tuple[str, bytes]


class EmailService:
    """Service for sending payroll notifications"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.email_from = settings.EMAIL_FROM

        # Path to templates
        self.template_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "emails")

    def _get_template(self, template_name: str) -> Optional[str]:
        """Read an HTML template from file"""
        try:
            with open(os.path.join(self.template_dir, f"{template_name}.html"), "r") as f:
                return f.read()
        except OSError as e:
            logger.error("Error reading email template %s: %s", template_name, e)
            return None

    def _deliver(self, msg: MIMEMultipart) -> None:
        # smtplib blocks, callers run this in a worker thread
        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            server.starttls()
            server.login(self.smtp_user, self.smtp_password)
            server.send_message(msg)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        attachments: Optional[List[Attachment]] = None,
    ) -> bool:
        """General method to send an email (Mocked if no credentials)"""
        attachments = attachments or []
        if not self.smtp_user or not self.smtp_password:
            logger.info(
                "MOCK EMAIL to %s: %s (body %d chars, %d attachment(s))",
                to_email, subject, len(html_content), len(attachments),
            )
            return True

        try:
            msg = MIMEMultipart()
            msg["From"] = self.email_from
            msg["To"] = to_email
            msg["Subject"] = subject

            msg.attach(MIMEText(html_content, "html"))
            for filename, content in attachments:
                part = MIMEApplication(content, Name=filename)
                part["Content-Disposition"] = f'attachment; filename="{filename}"'
                msg.attach(part)

            await run_in_threadpool(self._deliver, msg)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            return False

    async def send_payslip(
        self,
        to_email: str,
        payroll: Payroll,
        pdf_content: bytes,
        filename: str,
        company_name: str = "",
    ) -> bool:
        """Send the payslip PDF for a payroll period"""
        period = f"{payroll.month_name} {payroll.year}"
        template = self._get_template("payslip")
        if not template:
            template = "<p>Dear {{name}},</p><p>Please find attached your payslip for {{period}}.</p>"

        # Replace placeholders
        content = template.replace("{{name}}", payroll.employee_name or payroll.employee_id)
        content = content.replace("{{period}}", period)
        content = content.replace("{{net_salary}}", f"{payroll.net_salary:,.2f}")
        content = content.replace("{{company}}", company_name)
        content = content.replace("{{year}}", str(datetime.now().year))

        return await self.send_email(
            to_email,
            f"Payslip for {period}",
            content,
            attachments=[(filename, pdf_content)],
        )
