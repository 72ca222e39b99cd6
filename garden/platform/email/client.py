import abc
import smtplib
from email.message import EmailMessage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import boto3
import sentry_sdk
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from pydantic import model_validator

from garden import settings
from garden.common.domain import BaseDomain
from garden.platform.email.exceptions import EmailFailedToSend


class EmailClientDomain(BaseDomain):
    """
    All clients must take in this object to send mail
    """

    # (address, display name) e.g. ('noreply@communitygardens.app', 'Community Gardens')
    from_email: tuple[str, str]
    to_emails: list[str]
    subject: str
    plain_text_content: str | None = None
    html_content: str | None = None

    @model_validator(mode='after')
    def validate_content(self):
        if self.plain_text_content is None and self.html_content is None:
            raise ValueError('Must supply at least one of a plain_text_content or html_content')

        return self

    @property
    def formatted_from(self) -> str:
        return f'{self.from_email[1]} <{self.from_email[0]}>'

    def to_mime(self) -> MIMEMultipart:
        mmp = MIMEMultipart('alternative')
        if self.plain_text_content is not None:
            mmp.attach(MIMEText(self.plain_text_content, 'plain'))
        if self.html_content is not None:
            mmp.attach(MIMEText(self.html_content, 'html'))

        mmp['Subject'] = self.subject
        mmp['From'] = self.formatted_from
        mmp['To'] = ', '.join(self.to_emails)
        return mmp


class AbstractEmailClient(abc.ABC):
    def __init__(self, *args, **kwargs): ...

    @abc.abstractmethod
    def send(self, message: EmailClientDomain): ...


class ConsoleEmailClient(AbstractEmailClient):
    """
    Development client, nothing leaves the machine
    """

    def send(self, message: EmailClientDomain):
        body = message.plain_text_content or message.html_content
        logger.info(
            '\n📧 EMAIL (console backend)\n'
            f'To: {", ".join(message.to_emails)}\n'
            f'Subject: {message.subject}\n'
            f'{body}'
        )


class MockEmailClient(AbstractEmailClient):
    def __init__(self, *args, **kwargs):
        self.email_catcher = self.get_email_catcher()
        super().__init__(*args, **kwargs)

    def send(self, message: EmailClientDomain):
        self.email_catcher.append(message)

    def get_email_catcher(self) -> list:
        """
        Mock this object in tests to attach emails to it
        """
        return []


class SMTPEmailClient(AbstractEmailClient):
    """
    Any SMTP relay, e.g. Mailpit locally or a provider's submission port
    """

    def __init__(self, *args, **kwargs):
        self.smtp_host = settings.EMAIL_SMTP_HOST
        self.smtp_port = settings.EMAIL_SMTP_PORT
        self.smtp_user = settings.EMAIL_SMTP_USER
        self.smtp_password = settings.EMAIL_SMTP_PASSWORD
        self.use_tls = settings.EMAIL_SMTP_USE_TLS
        super().__init__(*args, **kwargs)

    def send(self, message: EmailClientDomain):
        msg = EmailMessage()
        msg['Subject'] = message.subject
        msg['From'] = message.formatted_from
        msg['To'] = ', '.join(message.to_emails)

        if message.plain_text_content:
            msg.set_content(message.plain_text_content)
        if message.html_content:
            msg.add_alternative(message.html_content, subtype='html')

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception(f'SMTP send to {self.smtp_host}:{self.smtp_port} failed')
            raise EmailFailedToSend(message=f'SMTP error: {exc}') from exc

        logger.info(f'Message sent to SMTP server at {self.smtp_host}:{self.smtp_port}')


class AWSEmailClient(AbstractEmailClient):
    def __init__(self, *args, **kwargs):
        self.client = boto3.client(
            'ses',
            region_name=settings.AWS_REGION_NAME,
            aws_access_key_id=settings.AWS_SES_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SES_SECRET_ACCESS_KEY,
        )
        super().__init__(*args, **kwargs)

    def send(self, message: EmailClientDomain):
        """
        Send an email using AWS SES API
        """
        logger.info(f'sending {message.subject} email to {message.to_emails}')
        try:
            return self.client.send_raw_email(
                Source=message.from_email[0],
                Destinations=message.to_emails,
                RawMessage={'Data': message.to_mime().as_string()},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception(exc)
            raise EmailFailedToSend(message=f'AWS SES error: {exc}') from exc


class ResilientLiveEmailClient(AbstractEmailClient):
    CLIENT_PRIORITY_ORDER = [
        # Primary
        AWSEmailClient,
        # Secondaries...
        SMTPEmailClient,
    ]

    def send(self, message: EmailClientDomain):
        failures = []
        for email_client in self.CLIENT_PRIORITY_ORDER:
            try:
                email_client().send(message)
            except EmailFailedToSend as exc:
                logger.warning(f'{email_client.__name__} failed to send!')
                sentry_sdk.capture_exception()
                failures.append(exc.message)
            except Exception as exc:
                raise EmailFailedToSend(message=f'Unexpected failure using {email_client.__name__}: {exc}') from exc
            else:
                return

        raise EmailFailedToSend(message=f'Exhausted all clients -> {"; ".join(failures)}')
