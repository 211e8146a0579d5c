# menu_portal/services/notifier.py
"""
Best-effort email notifications for the onboarding team.

Sending is always fire-and-forget: routes schedule these calls as background
tasks, and every failure (missing configuration, SMTP errors) is logged and
dropped. Nothing here may raise into the request that triggered it.
"""
import logging
import smtplib
from email.mime.text import MIMEText

from menu_portal.config import Settings
from menu_portal.utils.timeutils import utc_now

logger = logging.getLogger(__name__)

class EmailNotifier:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        s = self.settings
        return bool(s.SMTP_HOST and s.NOTIFY_EMAIL_TO)

    def _link(self, path: str) -> str:
        return f"{self.settings.APP_BASE_URL.rstrip('/')}{path}"

    def send(self, subject: str, body: str) -> bool:
        """Sends one plain-text email. Returns False (never raises) when it could not."""
        s = self.settings
        if not self.enabled:
            logger.warning("Email not sent (%s): SMTP_HOST or NOTIFY_EMAIL_TO not configured", subject)
            return False

        try:
            msg = MIMEText(body, "plain", "utf-8")
            msg["Subject"] = subject
            msg["From"] = s.MAIL_FROM
            msg["To"] = s.NOTIFY_EMAIL_TO

            with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=10) as smtp:
                if s.SMTP_USER and s.SMTP_PASSWORD:
                    smtp.starttls()
                    smtp.login(s.SMTP_USER, s.SMTP_PASSWORD)
                smtp.sendmail(s.MAIL_FROM, [s.NOTIFY_EMAIL_TO], msg.as_string())
            logger.info("Email sent: %s", subject)
            return True
        except Exception as e:
            logger.error("Email failed (%s): %s", subject, e)
            return False

    def send_docs_uploaded(
        self,
        brand_name: str,
        business_type: str,
        contact_email: str | None,
        contact_phone: str | None,
        categories: list,
        categories_description: str | None,
        documents: list,
        docs_path: str,
    ) -> bool:
        description = f"\nCategory description provided:\n{categories_description}\n" if categories_description else ""
        body = (
            "New Documents Upload Notification!\n\n"
            f"Brand Name: {brand_name}\n"
            f"Merchant Type: {business_type}\n"
            f"Official Email: {contact_email or '-'}\n"
            f"Official Phone: {contact_phone or '-'}\n\n"
            "Listed Products / Categories:\n"
            + "\n".join(f"- {c}" for c in categories or [])
            + f"\n{description}\n"
            "Uploaded Documents:\n"
            + "\n".join(f"- {d}" for d in documents)
            + f"\n\nTimestamp: {utc_now():%Y-%m-%d %H:%M} UTC\n\n"
            "Download Documents ZIP Secure Link:\n"
            f"{self._link(docs_path)}\n\n"
            f"Note: This link expires after {self.settings.RETENTION_HOURS} hours according to the retention policy."
        )
        return self.send(f"[Onboarding] Documents uploaded - {brand_name}", body)

    def send_zip_downloaded(self, brand_name: str, item_count: int, zip_path: str) -> bool:
        body = (
            "Menu ZIP Downloaded!\n\n"
            f"Brand Name: {brand_name}\n"
            f"Menu Items: {item_count}\n"
            f"Downloaded At: {utc_now():%Y-%m-%d %H:%M} UTC\n\n"
            "Download Menu ZIP Secure Link:\n"
            f"{self._link(zip_path)}\n\n"
            f"Note: This link expires after {self.settings.RETENTION_HOURS} hours according to the retention policy."
        )
        return self.send(f"[Menu Portal] ZIP Downloaded - {brand_name}", body)
