from garden.platform.sms.client import (
    AbstractSMSClient,
    AWSSNSSMSClient,
    ConsoleSMSClient,
    MockSMSClient,
    ResilientLiveSMSClient,
    SMSMessage,
)
from garden.platform.sms.exceptions import SMSFailedToSend
from garden.platform.sms.sms import SMS
from garden.platform.sms.utils import format_phone_number, is_valid_phone_number, mask_phone_number

__all__ = [
    'AbstractSMSClient',
    'AWSSNSSMSClient',
    'ConsoleSMSClient',
    'MockSMSClient',
    'ResilientLiveSMSClient',
    'SMSFailedToSend',
    'SMSMessage',
    'SMS',
    'format_phone_number',
    'is_valid_phone_number',
    'mask_phone_number',
]
