"""
SMS service wrapper similar to Email.
Provides a simple interface for sending SMS messages.
"""

from loguru import logger

from garden import settings
from garden.platform.sms.client import (
    AbstractSMSClient,
    ConsoleSMSClient,
    MockSMSClient,
    ResilientLiveSMSClient,
    SMSMessage,
)
from garden.platform.sms.exceptions import SMSFailedToSend
from garden.platform.sms.utils import format_phone_number, is_valid_phone_number, mask_phone_number

SMS_CLIENT_MAP = {
    'console': ConsoleSMSClient,
    'live': ResilientLiveSMSClient,
}


def get_sms_client() -> AbstractSMSClient:
    if settings.USE_MOCK_SMS_CLIENT:
        # For testing - captures messages in memory
        return MockSMSClient()
    return SMS_CLIENT_MAP[settings.SMS_BACKEND]()


class SMS:
    """
    High-level SMS sending interface.

    Usage:
        SMS(phone_number='(555) 123-4567', message='Your verification code is: 123456').send()
    """

    def __init__(
        self,
        phone_number: str,
        message: str,
        sender_id: str | None = settings.SMS_SENDER_ID,
        client: AbstractSMSClient | None = None,
    ):
        self.phone_number = phone_number
        self.message = message
        self.sender_id = sender_id
        self.client = client or get_sms_client()

    def send(self) -> None:
        if not is_valid_phone_number(self.phone_number):
            raise SMSFailedToSend(message='Invalid phone number format')

        sms_domain = SMSMessage(
            phone_number=format_phone_number(self.phone_number),
            message=self.message,
            sender_id=self.sender_id,
        )
        self.client.send(sms_domain)
        logger.info(f'SMS sent to {mask_phone_number(sms_domain.phone_number)}')
