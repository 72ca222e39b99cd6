import datetime
import re

from garden.core.authentication import AuthenticationService

CODE_PATTERN = re.compile(r'code is: (\d{6})')


def extract_code(text: str) -> str:
    """Pull the 6 digit code out of a delivered email or SMS body"""
    match = CODE_PATTERN.search(text)
    assert match, f'no code found in: {text}'
    return match.group(1)


def wrong_code(code: str) -> str:
    """A 6 digit code guaranteed to differ from `code`"""
    return '000000' if code != '000000' else '111111'


def auth_headers(user_id: str) -> dict[str, str]:
    session_token = AuthenticationService.create_session_token(user_id)
    return {'Authorization': f'Bearer {session_token.token}'}


class FakeClock:
    """
    Manually advanced clock for expiry tests
    """

    def __init__(self, start: datetime.datetime | None = None):
        self.now = start or datetime.datetime(2024, 5, 1, 12, 0, tzinfo=datetime.timezone.utc)

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += datetime.timedelta(**delta)
