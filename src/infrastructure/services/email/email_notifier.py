"""SMTP notifier for recovery codes, invitations and admin reset links.

Templates are rendered with Jinja2 (auto-escaped) and delivered through
FastMail. In test mode messages are rendered and logged instead of sent.
Every public method returns ``False`` on failure rather than raising,
because delivery problems must never change a recovery outcome.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from jinja2 import Environment, FileSystemLoader, TemplateError

from src.core.config.settings import settings
from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.entities.user import Role
from src.domain.interfaces.notifier import INotifier
from src.domain.value_objects.email import Email
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")

_CODE_TEMPLATES = {
    RecoveryPurpose.PASSWORD_RESET: ("password_reset_code.html", "password_reset_code_subject"),
    RecoveryPurpose.INVITATION_ACCEPT: ("verification_code.html", "invitation_code_subject"),
}


class EmailNotifier(INotifier):
    """INotifier implementation over SMTP.

    Attributes:
        jinja_env: Template environment rooted at ``EMAIL_TEMPLATES_DIR``.
        fastmail: FastMail client, ``None`` in test mode.
    """

    def __init__(self, templates_dir: Optional[str] = None, test_mode: Optional[bool] = None):
        self._test_mode = settings.EMAIL_TEST_MODE if test_mode is None else test_mode
        try:
            settings.validate_smtp_config()
        except ValueError as e:
            logger.warning("Email configuration validation warning", error=str(e))

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(Path(templates_dir or settings.EMAIL_TEMPLATES_DIR))),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.jinja_env.filters["format_datetime"] = _format_datetime

        self.fastmail = None if self._test_mode else FastMail(self._connection_config())
        logger.info("EmailNotifier initialized", test_mode=self._test_mode)

    @staticmethod
    def _connection_config() -> ConnectionConfig:
        password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else ""
        return ConnectionConfig(
            MAIL_USERNAME=settings.SMTP_USERNAME or "",
            MAIL_PASSWORD=password,
            MAIL_FROM=settings.FROM_EMAIL,
            MAIL_FROM_NAME=settings.FROM_NAME,
            MAIL_PORT=settings.SMTP_PORT,
            MAIL_SERVER=settings.SMTP_HOST,
            MAIL_STARTTLS=settings.SMTP_USE_TLS,
            MAIL_SSL_TLS=settings.SMTP_USE_SSL,
            USE_CREDENTIALS=bool(settings.SMTP_USERNAME and password),
            VALIDATE_CERTS=True,
        )

    async def send_verification_code(
        self,
        email: str,
        code: str,
        purpose: RecoveryPurpose,
        expires_at: datetime,
        name: Optional[str] = None,
        language: str = "en",
    ) -> bool:
        template_name, subject_key = _CODE_TEMPLATES[purpose]
        return await self._deliver(
            email,
            subject_key,
            template_name,
            {"code": code, "expires_at": expires_at, "name": name},
            language,
        )

    async def send_invitation(
        self,
        email: str,
        invitation_url: str,
        role: Role,
        expires_at: datetime,
        inviter_name: Optional[str] = None,
        language: str = "en",
    ) -> bool:
        return await self._deliver(
            email,
            "invitation_email_subject",
            "invitation.html",
            {
                "invitation_url": invitation_url,
                "role": role.value,
                "expires_at": expires_at,
                "inviter_name": inviter_name,
            },
            language,
        )

    async def send_admin_reset_link(
        self,
        email: str,
        reset_url: str,
        expires_at: datetime,
        name: Optional[str] = None,
        language: str = "en",
    ) -> bool:
        return await self._deliver(
            email,
            "admin_reset_email_subject",
            "admin_password_reset.html",
            {"reset_url": reset_url, "expires_at": expires_at, "name": name},
            language,
        )

    async def _deliver(
        self,
        to_email: str,
        subject_key: str,
        template_name: str,
        context: Dict[str, Any],
        language: str,
    ) -> bool:
        masked = Email.mask(to_email)
        subject = get_translated_message(subject_key, language)
        context = {"app_name": settings.FROM_NAME, "language": language, **context}

        try:
            html_content = self.jinja_env.get_template(template_name).render(**context)
        except TemplateError as e:
            logger.error("Template rendering failed", template=template_name, error=str(e))
            return False

        if self._test_mode:
            logger.info(
                "Email sent in test mode",
                to_email=masked,
                subject=subject,
                template=template_name,
                html_length=len(html_content),
            )
            return True

        message = MessageSchema(
            subject=subject,
            recipients=[to_email],
            body=html_content,
            alternative_body=_html_to_text(html_content),
            subtype=MessageType.html,
            multipart_subtype="alternative",
        )
        try:
            await self.fastmail.send_message(message)
        except Exception as e:
            logger.error("Failed to send email", to_email=masked, subject=subject, error=str(e))
            return False

        logger.info("Email sent successfully", to_email=masked, subject=subject)
        return True


def _format_datetime(value: Optional[datetime], format_string: str = "%Y-%m-%d %H:%M UTC") -> str:
    if value is None:
        return ""
    return value.strftime(format_string)


def _html_to_text(html_content: str) -> str:
    lines = (line.strip() for line in _TAG_RE.sub("", html_content).splitlines())
    return "\n".join(line for line in lines if line)
