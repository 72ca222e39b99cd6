import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from garden.core.authentication import AuthenticationService
from garden.core.authentication.domains import EmailVerified
from garden.core.authentication.services.authentication_service import (
    AccountInactive,
    AuthUserNotFound,
    CodeDeliveryError,
    CodeVerificationFailed,
    InvalidCredentials,
    PhoneRequired,
    UserAlreadyExists,
)
from garden.core.user import UserNotFound, UserRead, UserService
from garden.core.verification.constants import DeliveryChannelEnum, VerificationErrorKindEnum
from garden.core.verification.delivery import DeliveryFailed
from garden.core.verification.domains import CodeAccepted, CodeDeliveryFailed, CodeRejected, CodeSent
from garden.core.verification.service import VerificationService


def _user(**overrides) -> UserRead:
    fields = dict(
        id='user-1',
        name='Alice',
        email='alice@x.com',
        hashed_password=AuthenticationService.hash_password('secret1'),
        role='user',
        status='active',
        email_verified=True,
        phone_verified=False,
        two_factor_enabled=False,
        two_factor_method='email',
    )
    fields.update(overrides)
    return UserRead(**fields)


@pytest.fixture
def user_service() -> MagicMock:
    return MagicMock(spec=UserService)


@pytest.fixture
def verification_service() -> MagicMock:
    service = MagicMock(spec=VerificationService)
    service.delivery = MagicMock()
    return service


@pytest.fixture
def auth_service(user_service, verification_service) -> AuthenticationService:
    return AuthenticationService(user_service=user_service, verification_service=verification_service)


def test_register_race_on_unique_email(auth_service, user_service):
    user_service.email_exists.return_value = False
    user_service.create_user.side_effect = IntegrityError('INSERT', {}, Exception('UNIQUE constraint failed'))

    with pytest.raises(UserAlreadyExists):
        auth_service.register(name='Alice', email='alice@x.com', password='secret1')


def test_register_sends_verification_to_new_account(auth_service, user_service, verification_service):
    user_service.email_exists.return_value = False
    user_service.create_user.return_value = _user(email_verified=False)
    verification_service.send_email_verification.return_value = CodeSent(message='sent', expires_in=600000)

    result = auth_service.register(name='Alice', email='Alice@x.com', password='secret1', phone='555-123-4567')

    created = user_service.create_user.call_args.args[0]
    assert created.email == 'alice@x.com'
    assert created.phone == '+15551234567'
    assert created.email_verified is False
    assert AuthenticationService.is_password_match('secret1', created.hashed_password)
    verification_service.send_email_verification.assert_called_once_with('alice@x.com', 'Alice')
    assert result.verification_sent is True
    assert result.token is None


def test_unknown_email_still_checks_a_password(auth_service, user_service, monkeypatch):
    user_service.get_user_for_email_or_none.return_value = None
    checked = []
    monkeypatch.setattr(
        AuthenticationService,
        'is_password_match',
        classmethod(lambda cls, plain, hashed: checked.append(hashed) or False),
    )

    with pytest.raises(InvalidCredentials):
        auth_service.login(email='nobody@x.com', password='secret1')

    assert len(checked) == 1


def test_verify_email_loser_of_race_sends_no_welcome(auth_service, user_service, verification_service):
    user_service.get_user_for_email.return_value = _user(email_verified=False)
    user_service.get_user_for_id.return_value = _user()
    verification_service.verify_email_code.return_value = CodeAccepted()
    user_service.mark_email_verified.return_value = False

    result = auth_service.verify_email(email='alice@x.com', code='123456')

    assert result.token
    verification_service.delivery.send_welcome_email.assert_not_called()


def test_welcome_failure_does_not_undo_verification(auth_service, user_service, verification_service):
    user_service.get_user_for_email.return_value = _user(email_verified=False)
    user_service.get_user_for_id.return_value = _user()
    verification_service.verify_email_code.return_value = CodeAccepted()
    user_service.mark_email_verified.return_value = True
    verification_service.delivery.send_welcome_email.side_effect = DeliveryFailed(message='SES is down')

    result = auth_service.verify_email(email='alice@x.com', code='123456')

    assert result.message == 'Email verified successfully'
    user_service.record_login.assert_called_once_with('user-1')


def test_rejected_code_carries_error_kind(auth_service, user_service, verification_service):
    user_service.get_user_for_email.return_value = _user(email_verified=False)
    verification_service.verify_email_code.return_value = CodeRejected(
        error='Invalid code. 3 attempts remaining.',
        error_kind=VerificationErrorKindEnum.INVALID_CODE,
        attempts_remaining=3,
    )

    with pytest.raises(CodeVerificationFailed) as exc_info:
        auth_service.verify_email(email='alice@x.com', code='000000')

    assert exc_info.value.error_code == 'INVALID_CODE'
    assert exc_info.value.extra == {'attemptsRemaining': 3}
    user_service.mark_email_verified.assert_not_called()


def test_unknown_account(auth_service, user_service):
    user_service.get_user_for_email.side_effect = UserNotFound

    with pytest.raises(AuthUserNotFound):
        auth_service.resend_verification(email='nobody@x.com', channel=DeliveryChannelEnum.EMAIL)


def test_two_factor_by_sms_needs_a_phone(auth_service, user_service):
    user_service.get_user_for_email_or_none.return_value = _user(two_factor_enabled=True, two_factor_method='sms')

    with pytest.raises(PhoneRequired):
        auth_service.login(email='alice@x.com', password='secret1')


def test_two_factor_delivery_failure(auth_service, user_service, verification_service):
    user_service.get_user_for_email_or_none.return_value = _user(two_factor_enabled=True)
    verification_service.send_two_factor_code.return_value = CodeDeliveryFailed(error='Failed to send 2FA code: x')

    with pytest.raises(CodeDeliveryError) as exc_info:
        auth_service.login(email='alice@x.com', password='secret1')

    assert exc_info.value.extra == {'error': 'Failed to send 2FA code: x'}
    user_service.record_login.assert_not_called()


def test_verify_email_refuses_suspended_account_before_spending_code(
    auth_service, user_service, verification_service
):
    user_service.get_user_for_email.return_value = _user(email_verified=False, status='suspended')

    with pytest.raises(AccountInactive):
        auth_service.verify_email(email='alice@x.com', code='123456')

    verification_service.verify_email_code.assert_not_called()
    user_service.mark_email_verified.assert_not_called()
    user_service.record_login.assert_not_called()


def test_verify_email_with_two_factor_issues_no_token(auth_service, user_service, verification_service):
    user_service.get_user_for_email.return_value = _user(email_verified=False, two_factor_enabled=True)
    user_service.get_user_for_id.return_value = _user(two_factor_enabled=True)
    verification_service.verify_email_code.return_value = CodeAccepted()
    user_service.mark_email_verified.return_value = True

    result = auth_service.verify_email(email='alice@x.com', code='123456')

    assert isinstance(result, EmailVerified)
    assert result.requires_login is True
    user_service.record_login.assert_not_called()


def test_verify_two_factor_refuses_suspended_account(auth_service, user_service, verification_service):
    user_service.get_user_for_email.return_value = _user(two_factor_enabled=True, status='suspended')

    with pytest.raises(AccountInactive):
        auth_service.verify_two_factor(email='alice@x.com', code='123456')

    verification_service.verify_two_factor_code.assert_not_called()


def test_register_without_verification_stamps_utc(auth_service, user_service, monkeypatch):
    monkeypatch.setattr('garden.settings.REQUIRE_EMAIL_VERIFICATION', False)
    user_service.email_exists.return_value = False
    user_service.create_user.return_value = _user()

    auth_service.register(name='Alice', email='alice@x.com', password='secret1')

    verified_at = user_service.create_user.call_args.args[0].email_verified_at
    assert verified_at.utcoffset() == datetime.timedelta(0)
