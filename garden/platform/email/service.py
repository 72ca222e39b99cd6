from loguru import logger

from garden import settings
from garden.platform.email import client

EMAIL_CLIENT_MAP: dict[str, type[client.AbstractEmailClient]] = {
    'console': client.ConsoleEmailClient,
    'smtp': client.SMTPEmailClient,
    'live': client.ResilientLiveEmailClient,
}


def get_email_client_class() -> type[client.AbstractEmailClient]:
    if settings.USE_MOCK_EMAIL_CLIENT:
        return client.MockEmailClient
    return EMAIL_CLIENT_MAP[settings.EMAIL_BACKEND]


class EmailService:
    """
    Sends verification, two-factor and welcome mail from the gardens
    noreply address through the configured backend
    """

    def __init__(self, email_client: client.AbstractEmailClient | None = None):
        # SMTP and SES connections are opened on first send
        self._client = email_client

    @property
    def client(self) -> client.AbstractEmailClient:
        if self._client is None:
            self._client = get_email_client_class()()
        return self._client

    @classmethod
    def factory(cls) -> 'EmailService':
        return cls()

    def send(self, subject: str, recipients: list[str], plain_message: str, html_message: str) -> None:
        message = client.EmailClientDomain(
            from_email=(settings.EMAIL_FROM_ADDRESS, settings.COMPANY_NAME),
            to_emails=recipients,
            subject=subject,
            plain_text_content=plain_message,
            html_content=html_message,
        )
        logger.info(f'Sending "{subject}" to {len(recipients)} recipient(s) via {type(self.client).__name__}')
        self.client.send(message)
