from pydantic import EmailStr, Field

from garden.common.domain import BaseDomain
from garden.platform.email.service import EmailService
from garden.platform.email.utils import render_template


class Email(BaseDomain):
    """
    A templated message. `template_name` names a pair of templates,
    `<name>.html` and `<name>.txt`, rendered with the same context.
    """

    subject: str
    recipients: list[EmailStr]
    template_name: str
    context: dict = Field(default_factory=lambda: {})

    def render_template_with_context(self, extension: str) -> str:
        return render_template(
            template_name=f'{self.template_name}.{extension}',
            context=dict(
                # subject is used for the email's title
                subject=self.subject,
                **self.context,
            ),
        )

    def send(self, email_service: EmailService | None = None) -> None:
        """
        Delivered synchronously so callers learn about provider failures
        through EmailFailedToSend
        """
        # make sure the email generates before dispatching send
        html_message = self.render_template_with_context('html')
        plain_message = self.render_template_with_context('txt')

        email_service = email_service or EmailService.factory()
        email_service.send(
            subject=self.subject,
            recipients=list(self.recipients),
            plain_message=plain_message,
            html_message=html_message,
        )
