import os
import sys

# Test Environment Overrides will override .env files
# THESE MUST BE SET BEFORE ANYTHING FROM garden IS IMPORTED
EXPECTED_SECRET_KEY = 'test'
os.environ.setdefault('SECRET_KEY', 'test')
os.environ.setdefault('ENVIRONMENT', 'testing')
os.environ.setdefault('COMPANY_NAME', 'Community Gardens')
os.environ.setdefault('EMAIL_FROM_ADDRESS', 'noreply@communitygardens.app')
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('DB_AUTO_CREATE_TABLES', 'True')
os.environ.setdefault('CODE_STORE_BACKEND', 'memory')
# The request middleware must commit so data survives between requests of a journey
os.environ.setdefault('ATOMIC_REQUESTS', 'True')
os.environ.setdefault('REQUIRE_EMAIL_VERIFICATION', 'True')
os.environ.setdefault('AUTH_RATE_LIMIT_ENABLED', 'False')
os.environ.setdefault('USE_MOCK_SENTRY_CLIENT', 'True')
os.environ.setdefault('USE_MOCK_EMAIL_CLIENT', 'True')
os.environ.setdefault('USE_MOCK_SMS_CLIENT', 'True')

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from garden import setup

setup.run()

from unittest import mock

import pytest

from garden import settings
from garden.common import context
from garden.platform.email.client import EmailClientDomain
from garden.platform.sms.client import SMSMessage

# Add fixtures here
pytest_plugins = [
    'tests.factories.user',
]

# ruff: noqa: E402

# When garden files are imported before the above patching, tests will use
# incorrect database settings as well as non mocked services.
if settings.SECRET_KEY != EXPECTED_SECRET_KEY:
    raise ValueError(
        'Patching of environment variables failed.\n'
        'This will cause unexpected test failures'
        'Check all garden imports are delayed until after patching.\n'
    )


@pytest.fixture(autouse=True)
def mock_boto3_session():
    """
    Ensure nothing reaches SES or SNS
    """
    with mock.patch('boto3.session.Session') as mock_session:
        yield mock_session


@pytest.fixture(scope='function', autouse=True)
def app_context():
    token = context.initialize(user_type=context.AppContextUserType.SYSTEM, user_id='user-system')
    yield
    context.reset(token)


@pytest.fixture(scope='function')
def caught_emails(monkeypatch) -> list[EmailClientDomain]:
    """
    Fixture that returns any sent emails during the function calls
    def sample_test(caught_emails):
        service.something_that_sends_an_email_as_side_effect()
        assert len(caught_emails) == 1
    """
    caught_email_container = []
    monkeypatch.setattr(
        'garden.platform.email.client.MockEmailClient.get_email_catcher', lambda self: caught_email_container
    )
    return caught_email_container


@pytest.fixture(scope='function')
def caught_sms(monkeypatch) -> list[SMSMessage]:
    caught_sms_container = []
    monkeypatch.setattr('garden.platform.sms.client.MockSMSClient.get_sms_catcher', lambda self: caught_sms_container)
    return caught_sms_container
