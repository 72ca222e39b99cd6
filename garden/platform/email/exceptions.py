from garden.common.exceptions import InternalException


class EmailFailedToSend(InternalException):
    """Raised when an email could not be handed to any provider"""

    default_detail = 'Email failed to send'
    default_code = 'EMAIL_SEND_FAILURE'
