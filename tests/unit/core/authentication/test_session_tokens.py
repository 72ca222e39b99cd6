import datetime

import jwt
import pytest

from garden import settings
from garden.core.authentication import AuthenticationService
from garden.core.authentication.services.authentication_service import (
    AuthTokenExpired,
    AuthTokenInvalid,
    PasswordFailsPolicyCheck,
)


def _encode(**overrides) -> str:
    now = datetime.datetime.now(tz=datetime.timezone.utc)
    claims = {
        'jti': 'jti-1',
        'sub': 'usr-1',
        'iat': int(now.timestamp()),
        'exp': int((now + datetime.timedelta(hours=1)).timestamp()),
        'iss': settings.JWT_ISSUER,
        'aud': settings.JWT_AUDIENCE,
    }
    claims.update(overrides)
    return jwt.encode(claims, settings.SECRET_KEY, algorithm='HS256')


def test_session_token_round_trip():
    session_token = AuthenticationService.create_session_token('usr-1')

    content = AuthenticationService.verify_session_token(session_token.token)

    assert content.sub == 'usr-1'
    assert content.iss == 'garden-management-system'
    assert content.aud == 'garden-users'
    lifetime = content.exp - content.iat
    assert lifetime == int(datetime.timedelta(days=7).total_seconds())


def test_session_tokens_are_unique():
    first = AuthenticationService.create_session_token('usr-1')
    second = AuthenticationService.create_session_token('usr-1')
    assert first.token != second.token


def test_expired_token():
    past = datetime.datetime.now(tz=datetime.timezone.utc) - datetime.timedelta(days=1)
    token = _encode(iat=int(past.timestamp()), exp=int((past + datetime.timedelta(hours=1)).timestamp()))

    with pytest.raises(AuthTokenExpired):
        AuthenticationService.verify_session_token(token)


@pytest.mark.parametrize(
    'overrides',
    [
        {'aud': 'someone-else'},
        {'iss': 'someone-else'},
    ],
)
def test_token_for_another_audience_or_issuer(overrides):
    with pytest.raises(AuthTokenInvalid):
        AuthenticationService.verify_session_token(_encode(**overrides))


def test_token_signed_with_another_key():
    session_token = AuthenticationService.create_session_token('usr-1', secret_key='not-the-secret')

    with pytest.raises(AuthTokenInvalid):
        AuthenticationService.verify_session_token(session_token.token)


@pytest.mark.parametrize('token', [None, '', 'garbage', 'a.b.c'])
def test_malformed_token(token):
    with pytest.raises(AuthTokenInvalid):
        AuthenticationService.verify_session_token(token)


def test_password_hash_and_match():
    hashed = AuthenticationService.hash_password('secret1')

    assert hashed != 'secret1'
    assert AuthenticationService.is_password_match('secret1', hashed) is True
    assert AuthenticationService.is_password_match('secret2', hashed) is False
    assert AuthenticationService.is_password_match('secret1', 'not-a-hash') is False


def test_password_policy():
    AuthenticationService.password_meets_policy('sixsix')

    with pytest.raises(PasswordFailsPolicyCheck) as exc_info:
        AuthenticationService.password_meets_policy('five5')

    assert exc_info.value.message == 'Password must be at least 6 characters long'
