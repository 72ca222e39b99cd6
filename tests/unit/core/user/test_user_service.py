import datetime
from unittest.mock import patch

from garden.core.user import UserService


def _assert_utc(value: datetime.datetime):
    assert value.tzinfo is not None
    assert value.utcoffset() == datetime.timedelta(0)


def test_mark_email_verified_stamps_utc():
    with patch('garden.core.user.service.User.update_where', return_value=1) as update_where:
        assert UserService().mark_email_verified('user-1') is True

    _assert_utc(update_where.call_args.kwargs['email_verified_at'])


def test_mark_email_verified_reports_lost_race():
    with patch('garden.core.user.service.User.update_where', return_value=0):
        assert UserService().mark_email_verified('user-1') is False


def test_mark_phone_verified_stamps_utc():
    with patch('garden.core.user.service.User.update_where', return_value=1) as update_where:
        assert UserService().mark_phone_verified('user-1') is True

    _assert_utc(update_where.call_args.kwargs['phone_verified_at'])


def test_record_login_stamps_utc():
    with patch('garden.core.user.service.User.update') as update:
        UserService().record_login('user-1')

    _assert_utc(update.call_args.kwargs['last_login_at'])
