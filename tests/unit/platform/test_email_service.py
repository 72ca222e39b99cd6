from garden.platform.email import client
from garden.platform.email.service import EmailService, get_email_client_class


def test_mock_client_wins_over_backend(monkeypatch):
    monkeypatch.setattr('garden.settings.USE_MOCK_EMAIL_CLIENT', True)
    monkeypatch.setattr('garden.settings.EMAIL_BACKEND', 'smtp')

    assert get_email_client_class() is client.MockEmailClient


def test_backend_selects_client(monkeypatch):
    monkeypatch.setattr('garden.settings.USE_MOCK_EMAIL_CLIENT', False)
    monkeypatch.setattr('garden.settings.EMAIL_BACKEND', 'console')

    assert get_email_client_class() is client.ConsoleEmailClient


def test_subject_is_sent_unchanged(caught_emails):
    EmailService(email_client=client.MockEmailClient()).send(
        subject='🌱 Verify Your Email - Community Gardens',
        recipients=['alice@x.com'],
        plain_message='Your code is 123456',
        html_message='<p>Your code is 123456</p>',
    )

    assert len(caught_emails) == 1
    assert caught_emails[0].subject == '🌱 Verify Your Email - Community Gardens'
    assert caught_emails[0].from_email == ('noreply@communitygardens.app', 'Community Gardens')
    assert caught_emails[0].to_emails == ['alice@x.com']
