import re

_NON_DIGITS = re.compile(r'\D')


def _digits(phone_number: str) -> str:
    return _NON_DIGITS.sub('', phone_number or '')


def is_valid_phone_number(phone_number: str) -> bool:
    """
    Loose E.164 shape check, 10 to 15 digits once punctuation is dropped
    """
    return 10 <= len(_digits(phone_number)) <= 15


def format_phone_number(phone_number: str) -> str:
    """
    Normalise to E.164. Bare 10 digit numbers are assumed to be North American.
        (555) 123-4567  -> +15551234567
        1-555-123-4567  -> +15551234567
        +44 20 7946 0958 -> +442079460958
    """
    digits = _digits(phone_number)
    if len(digits) == 10:
        return f'+1{digits}'
    return f'+{digits}'


def mask_phone_number(phone_number: str) -> str:
    """Mask phone number for logs: +1******4567"""
    if len(phone_number) > 6:
        return f'{phone_number[:2]}{"*" * (len(phone_number) - 6)}{phone_number[-4:]}'
    return phone_number
