import abc

import boto3
import sentry_sdk
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from garden import settings
from garden.common.domain import BaseDomain
from garden.platform.sms.exceptions import SMSFailedToSend
from garden.platform.sms.utils import mask_phone_number


class SMSMessage(BaseDomain):
    """
    Domain object for sending SMS messages.
    All SMS clients must accept this object.
    """

    phone_number: str  # E.164 format: +15551234567
    message: str
    sender_id: str | None = None


class AbstractSMSClient(abc.ABC):
    def __init__(self, *args, **kwargs): ...

    @abc.abstractmethod
    def send(self, sms: SMSMessage): ...


class ConsoleSMSClient(AbstractSMSClient):
    """
    Development client, logs the text instead of sending it
    """

    def send(self, sms: SMSMessage):
        logger.info(f'\n📱 SMS (console backend)\nTo: {sms.phone_number}\n{sms.message}')


class MockSMSClient(AbstractSMSClient):
    """
    Mock SMS client for testing.
    Stores messages in memory instead of sending.
    """

    def __init__(self, *args, **kwargs):
        self.sms_catcher = self.get_sms_catcher()
        super().__init__(*args, **kwargs)

    def send(self, sms: SMSMessage):
        self.sms_catcher.append(sms)

    def get_sms_catcher(self) -> list:
        """
        Mock this object in tests to capture SMS messages
        """
        return []


class AWSSNSSMSClient(AbstractSMSClient):
    """
    AWS SNS SMS client. Needs credentials with SNS publish permissions.
    """

    def __init__(self, *args, **kwargs):
        # Require SNS-specific credentials - no fallback to generic AWS credentials
        if not settings.AWS_SNS_ACCESS_KEY_ID or not settings.AWS_SNS_SECRET_ACCESS_KEY:
            raise SMSFailedToSend(
                message='AWS_SNS_ACCESS_KEY_ID and AWS_SNS_SECRET_ACCESS_KEY must be configured to send SMS'
            )

        self.client = boto3.client(
            'sns',
            region_name=settings.AWS_REGION_NAME,
            aws_access_key_id=settings.AWS_SNS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SNS_SECRET_ACCESS_KEY,
        )
        super().__init__(*args, **kwargs)

    def send(self, sms: SMSMessage):
        masked = mask_phone_number(sms.phone_number)
        logger.info(f'Sending SMS to {masked}')

        message_attributes = {
            'AWS.SNS.SMS.SMSType': {
                'DataType': 'String',
                'StringValue': 'Transactional',  # Optimized for delivery over cost
            }
        }
        # Sender ID is not supported in all regions/countries
        if sms.sender_id:
            message_attributes['AWS.SNS.SMS.SenderID'] = {'DataType': 'String', 'StringValue': sms.sender_id}

        try:
            response = self.client.publish(
                PhoneNumber=sms.phone_number, Message=sms.message, MessageAttributes=message_attributes
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception(f'Failed to send SMS to {masked}')
            raise SMSFailedToSend(message=f'AWS SNS error: {exc}') from exc

        logger.info(f'SMS sent successfully. MessageId: {response.get("MessageId")}')
        return response


class ResilientLiveSMSClient(AbstractSMSClient):
    """
    Tries each SMS provider in priority order until one accepts the message.
    """

    CLIENT_PRIORITY_ORDER = [
        AWSSNSSMSClient,
    ]

    def send(self, sms: SMSMessage):
        failures = []
        for sms_client_class in self.CLIENT_PRIORITY_ORDER:
            try:
                sms_client_class().send(sms)
            except SMSFailedToSend as exc:
                logger.warning(f'{sms_client_class.__name__} failed to send!')
                sentry_sdk.capture_exception()
                failures.append(exc.message)
            except Exception as exc:
                raise SMSFailedToSend(message=f'Unexpected failure using {sms_client_class.__name__}: {exc}') from exc
            else:
                return

        raise SMSFailedToSend(message=f'Exhausted all clients -> {"; ".join(failures)}')
