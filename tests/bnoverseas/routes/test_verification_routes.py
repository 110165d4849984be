from datetime import timedelta

import pytest

from bnoverseas.auth.passwords import verify_password
from bnoverseas.core import config
from bnoverseas.core.utils import utc_now
from bnoverseas.models.user import User
from bnoverseas.routes import verification_routes
from bnoverseas.services.email import EmailDeliveryError, EmailType

from conftest import DEFAULT_PASSWORD


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []
    monkeypatch.setattr(
        verification_routes,
        'send_templated_email',
        lambda to, email_type, **context: sent.append((to, email_type, context)),
    )
    return sent


def _unverified(make_user, **fields):
    fields.setdefault('verification_otp', '482913')
    fields.setdefault('otp_expiry', utc_now() + timedelta(minutes=10))
    fields.setdefault('verification_token', 'verify-me')
    return make_user(is_verified=False, **fields)


def test_verify_otp_marks_user_verified(client, db, make_user) -> None:
    user = _unverified(make_user)

    response = client.post('/auth/verify-otp', json={'email': 'student@bnoverseas.com', 'otp': '482913'})

    assert response.status_code == 200
    db.expire_all()
    verified = db.get(User, user.id)
    assert verified.is_verified is True
    assert verified.email_verified_at is not None
    assert verified.verification_otp is None
    assert verified.verification_token is None


@pytest.mark.parametrize(
    ('fields', 'otp', 'error'),
    [
        ({}, '000000', 'Invalid OTP. Please check and try again.'),
        ({'otp_expiry': utc_now() - timedelta(minutes=1)}, '482913', 'OTP has expired. Please request a new one.'),
    ],
)
def test_verify_otp_rejects_wrong_or_expired_code(client, make_user, fields, otp, error) -> None:
    _unverified(make_user, **fields)

    response = client.post('/auth/verify-otp', json={'email': 'student@bnoverseas.com', 'otp': otp})

    assert response.status_code == 400
    assert response.json() == {'error': error}


def test_verify_otp_for_unknown_or_verified_user(client, make_user) -> None:
    make_user()

    unknown = client.post('/auth/verify-otp', json={'email': 'nobody@bnoverseas.com', 'otp': '123456'})
    verified = client.post('/auth/verify-otp', json={'email': 'student@bnoverseas.com', 'otp': '123456'})

    assert unknown.status_code == 404
    assert verified.status_code == 400
    assert verified.json() == {'error': 'Email already verified'}


def test_resend_otp_needs_email_service(client, make_user) -> None:
    _unverified(make_user)

    response = client.post('/auth/resend-otp', json={'email': 'student@bnoverseas.com'})

    assert response.status_code == 503


def test_resend_otp_rotates_code(client, db, make_user, sent_emails, monkeypatch) -> None:
    user = _unverified(make_user)
    monkeypatch.setattr(config, 'email_configured', lambda: True)

    response = client.post('/auth/resend-otp', json={'email': 'student@bnoverseas.com'})

    assert response.status_code == 200
    db.expire_all()
    rotated = db.get(User, user.id)
    assert sent_emails[0][1] == EmailType.EMAIL_VERIFICATION
    assert sent_emails[0][2]['otp'] == rotated.verification_otp
    assert sent_emails[0][2]['verification_url'].endswith('verify-email?email=student%40bnoverseas.com')


def test_resend_otp_reports_delivery_failure(client, make_user, monkeypatch) -> None:
    _unverified(make_user)
    monkeypatch.setattr(config, 'email_configured', lambda: True)

    def fail(*args, **kwargs):
        raise EmailDeliveryError('smtp down')

    monkeypatch.setattr(verification_routes, 'send_templated_email', fail)

    response = client.post('/auth/resend-otp', json={'email': 'student@bnoverseas.com'})

    assert response.status_code == 500
    assert response.json() == {'error': 'Failed to resend OTP. Please try again later.'}


def test_verify_email_link_redirects_to_success_page(client, db, make_user) -> None:
    user = _unverified(make_user)

    response = client.get('/auth/verify-email', params={'token': 'verify-me'}, follow_redirects=False)

    assert response.status_code == 307
    assert response.headers['location'] == f'{config.APP_URL}/auth/verify-email/success'
    db.expire_all()
    assert db.get(User, user.id).is_verified is True


def test_verify_email_link_with_unknown_token_redirects_to_error_page(client, make_user) -> None:
    _unverified(make_user)

    response = client.get('/auth/verify-email', params={'token': 'unknown'}, follow_redirects=False)

    assert response.headers['location'] == f'{config.APP_URL}/auth/verify-email/error'


def test_verify_email_link_requires_token(client) -> None:
    assert client.get('/auth/verify-email', follow_redirects=False).status_code == 400


def test_verify_email_post(client, make_user) -> None:
    _unverified(make_user)

    first = client.post('/auth/verify-email', json={'token': 'verify-me'})
    second = client.post('/auth/verify-email', json={'token': 'verify-me'})

    assert first.status_code == 200
    assert second.status_code == 400


def test_resend_verification_is_generic_for_unknown_users(client, sent_emails) -> None:
    response = client.post('/auth/resend-verification', json={'email': 'nobody@bnoverseas.com'})

    assert response.status_code == 200
    assert response.json()['message'] == verification_routes.GENERIC_VERIFICATION_MESSAGE
    assert sent_emails == []


def test_resend_verification_issues_new_link(client, db, make_user, sent_emails) -> None:
    user = _unverified(make_user)

    client.post('/auth/resend-verification', json={'email': 'student@bnoverseas.com'})

    db.expire_all()
    token = db.get(User, user.id).verification_token
    assert token != 'verify-me'
    assert sent_emails[0][1] == EmailType.VERIFICATION_LINK
    assert sent_emails[0][2]['verification_url'].endswith(f'token={token}')


def test_forgot_password_then_reset_password(client, db, make_user, sent_emails) -> None:
    user = make_user()

    forgot = client.post('/auth/forgot-password', json={'email': 'student@bnoverseas.com'})

    assert forgot.json()['message'] == verification_routes.GENERIC_RESET_MESSAGE
    db.expire_all()
    reset_token = db.get(User, user.id).reset_token
    assert sent_emails[0][2]['reset_url'].endswith(reset_token)

    reset = client.post('/auth/reset-password', json={'token': reset_token, 'password': 'a-brand-new-password'})

    assert reset.status_code == 200
    db.expire_all()
    updated = db.get(User, user.id)
    assert updated.reset_token is None
    assert verify_password('a-brand-new-password', updated.password_hash)
    assert not verify_password(DEFAULT_PASSWORD, updated.password_hash)


def test_forgot_password_is_generic_for_unknown_email(client, sent_emails) -> None:
    response = client.post('/auth/forgot-password', json={'email': 'nobody@bnoverseas.com'})

    assert response.json()['message'] == verification_routes.GENERIC_RESET_MESSAGE
    assert sent_emails == []


def test_reset_password_rejects_expired_token(client, make_user) -> None:
    make_user(reset_token='stale-token', reset_token_expiry=utc_now() - timedelta(minutes=1))

    response = client.post('/auth/reset-password', json={'token': 'stale-token', 'password': 'a-brand-new-password'})

    assert response.status_code == 400
    assert response.json() == {'error': 'Invalid or expired reset token'}
