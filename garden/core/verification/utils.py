import secrets

from garden.core.verification.constants import CODE_LENGTH


def generate_code(length: int = CODE_LENGTH) -> str:
    range_start = 10 ** (length - 1)
    range_end = 10**length - 1
    code = secrets.randbelow(range_end - range_start + 1) + range_start
    return str(code)
