from loguru import logger
from pydantic import ValidationError

from garden import settings
from garden.common.exceptions import InternalException
from garden.core.verification.constants import DeliveryChannelEnum
from garden.platform.email.email import Email
from garden.platform.email.exceptions import EmailFailedToSend
from garden.platform.sms import SMS, SMSFailedToSend, mask_phone_number


class DeliveryFailed(InternalException):
    default_detail = 'Failed to deliver message'
    default_code = 'DELIVERY_FAILED'


class DeliveryGateway:
    """
    Formats and dispatches the messages that carry codes. Which transport
    is used (console log, SMTP, SES, SNS or an in-memory mock) is decided by
    the email and SMS platform settings, so callers only deal with
    DeliveryFailed.
    """

    @classmethod
    def factory(cls) -> 'DeliveryGateway':
        return cls()

    def send_verification_email(self, email: str, name: str, code: str, expires_in_minutes: int) -> None:
        self._send_email(
            subject=f'🌱 Verify Your Email - {settings.COMPANY_NAME}',
            email=email,
            template_name='verification-code',
            context=dict(name=name, code=code, expires_in_minutes=expires_in_minutes),
        )

    def send_verification_sms(self, phone: str, name: str, code: str, expires_in_minutes: int) -> None:
        self._send_sms(
            phone=phone,
            message=(
                f'Hi {name}, your {settings.COMPANY_NAME} verification code is: {code}. '
                f'It expires in {expires_in_minutes} minutes.'
            ),
        )

    def send_two_factor_code(
        self,
        identifier: str,
        channel: DeliveryChannelEnum,
        name: str,
        code: str,
        expires_in_minutes: int,
    ) -> None:
        if DeliveryChannelEnum(channel) == DeliveryChannelEnum.SMS:
            self._send_sms(
                phone=identifier,
                message=(
                    f'Your {settings.COMPANY_NAME} sign in code is: {code}. '
                    f'It expires in {expires_in_minutes} minutes.'
                ),
            )
            return

        self._send_email(
            subject=f'🔐 Your 2FA Code - {settings.COMPANY_NAME}',
            email=identifier,
            template_name='two-factor-code',
            context=dict(name=name, code=code, expires_in_minutes=expires_in_minutes),
        )

    def send_welcome_email(self, email: str, name: str) -> None:
        self._send_email(
            subject=f'🎉 Welcome to {settings.COMPANY_NAME}!',
            email=email,
            template_name='welcome',
            context=dict(name=name),
        )

    def send_welcome_sms(self, phone: str, name: str) -> None:
        self._send_sms(
            phone=phone,
            message=f'Welcome to {settings.COMPANY_NAME}, {name}! Your phone number is verified.',
        )

    def _send_email(self, subject: str, email: str, template_name: str, context: dict) -> None:
        try:
            Email(subject=subject, recipients=[email], template_name=template_name, context=context).send()
        except (EmailFailedToSend, ValidationError) as exc:
            logger.warning(f'Failed to send {template_name} email to {email}: {exc}')
            raise DeliveryFailed(message=getattr(exc, 'message', str(exc))) from exc

    def _send_sms(self, phone: str, message: str) -> None:
        try:
            SMS(phone_number=phone, message=message).send()
        except SMSFailedToSend as exc:
            logger.warning(f'Failed to send SMS to {mask_phone_number(phone)}: {exc.message}')
            raise DeliveryFailed(message=exc.message) from exc
