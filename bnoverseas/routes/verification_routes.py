import logging
from datetime import timedelta
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from bnoverseas.auth.credentials import find_user_by_email, normalize_email
from bnoverseas.auth.passwords import generate_otp, generate_secure_token, hash_password
from bnoverseas.core import config
from bnoverseas.core.errors import Internal, NotFound, ServiceUnavailable, ValidationFailure
from bnoverseas.core.utils import utc_now
from bnoverseas.database import commit, get_db
from bnoverseas.models.user import User
from bnoverseas.routes.schemas import MessageResponse
from bnoverseas.services.email import EmailDeliveryError, EmailType, send_templated_email

router = APIRouter(tags=['verification'])

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = 'If an account with that email exists, a password reset link has been sent.'
GENERIC_VERIFICATION_MESSAGE = 'If an unverified account with that email exists, a verification link has been sent.'


class EmailRequest(BaseModel):
    email: EmailStr

    @field_validator('email')
    @classmethod
    def normalize_email_address(cls, value: str) -> str:
        return normalize_email(value)


class VerifyOtpRequest(EmailRequest):
    otp: str = Field(min_length=6, max_length=6)


class VerifyEmailRequest(BaseModel):
    token: str = Field(min_length=1)


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8)


def _require_unverified_user(db: Session, email: str) -> User:
    user = find_user_by_email(db, email)
    if user is None:
        raise NotFound('User not found')
    if user.is_verified:
        raise ValidationFailure('Email already verified')
    return user


def _mark_verified(user: User) -> None:
    user.is_verified = True
    user.email_verified_at = utc_now()
    user.verification_token = None
    user.verification_otp = None
    user.otp_expiry = None


def _find_by_verification_token(db: Session, token: str) -> User | None:
    return db.query(User).filter(
        User.verification_token == token,
        User.is_verified.is_(False),
    ).first()


@router.post('/verify-otp', response_model=MessageResponse)
def verify_otp(data: VerifyOtpRequest, db: Session = Depends(get_db)):
    user = _require_unverified_user(db, data.email)

    if user.otp_expiry and utc_now() > user.otp_expiry:
        raise ValidationFailure('OTP has expired. Please request a new one.')

    if not user.verification_otp or user.verification_otp != data.otp:
        raise ValidationFailure('Invalid OTP. Please check and try again.')

    _mark_verified(user)
    commit(db)

    return MessageResponse(message='Email verified successfully! You can now access all features.')


@router.post('/resend-otp', response_model=MessageResponse)
def resend_otp(data: EmailRequest, db: Session = Depends(get_db)):
    user = _require_unverified_user(db, data.email)

    if not config.email_configured():
        raise ServiceUnavailable('Email service is not configured. Please contact support.')

    user.verification_otp = generate_otp()
    user.otp_expiry = utc_now() + timedelta(minutes=config.OTP_EXPIRES_MINUTES)
    commit(db)

    try:
        send_templated_email(
            user.email,
            EmailType.EMAIL_VERIFICATION,
            first_name=user.first_name,
            otp=user.verification_otp,
            expires_minutes=config.OTP_EXPIRES_MINUTES,
            verification_url=f"{config.APP_URL}/auth/verify-email?{urlencode({'email': user.email})}",
        )
    except EmailDeliveryError as exc:
        raise Internal('Failed to resend OTP. Please try again later.') from exc

    return MessageResponse(message='New OTP sent to your email address.')


@router.get('/verify-email')
def verify_email_link(token: str = Query(''), db: Session = Depends(get_db)):
    if not token:
        raise ValidationFailure('Verification token is required')

    user = _find_by_verification_token(db, token)
    if user is None:
        return RedirectResponse(url=f'{config.APP_URL}/auth/verify-email/error')

    _mark_verified(user)
    commit(db)
    return RedirectResponse(url=f'{config.APP_URL}/auth/verify-email/success')


@router.post('/verify-email', response_model=MessageResponse)
def verify_email(data: VerifyEmailRequest, db: Session = Depends(get_db)):
    user = _find_by_verification_token(db, data.token)
    if user is None:
        raise ValidationFailure('Invalid verification token or email already verified')

    _mark_verified(user)
    commit(db)
    return MessageResponse(message='Email verified successfully')


@router.post('/resend-verification', response_model=MessageResponse)
def resend_verification(data: EmailRequest, db: Session = Depends(get_db)):
    user = find_user_by_email(db, data.email)
    if user is None or user.is_verified:
        return MessageResponse(message=GENERIC_VERIFICATION_MESSAGE)

    user.verification_token = generate_secure_token()
    commit(db)

    try:
        send_templated_email(
            user.email,
            EmailType.VERIFICATION_LINK,
            first_name=user.first_name,
            verification_url=f'{config.APP_URL}/auth/verify-email?token={user.verification_token}',
        )
    except EmailDeliveryError:
        logger.exception('Failed to send verification link to %s', user.email)

    return MessageResponse(message=GENERIC_VERIFICATION_MESSAGE)


@router.post('/forgot-password', response_model=MessageResponse)
def forgot_password(data: EmailRequest, db: Session = Depends(get_db)):
    user = find_user_by_email(db, data.email)
    if user is None:
        return MessageResponse(message=GENERIC_RESET_MESSAGE)

    user.reset_token = generate_secure_token()
    user.reset_token_expiry = utc_now() + timedelta(minutes=config.RESET_TOKEN_EXPIRES_MINUTES)
    commit(db)

    try:
        send_templated_email(
            user.email,
            EmailType.PASSWORD_RESET,
            first_name=user.first_name,
            expires_minutes=config.RESET_TOKEN_EXPIRES_MINUTES,
            reset_url=f'{config.APP_URL}/auth/reset-password?token={user.reset_token}',
        )
    except EmailDeliveryError:
        logger.exception('Failed to send password reset email to %s', user.email)

    return MessageResponse(message=GENERIC_RESET_MESSAGE)


@router.post('/reset-password', response_model=MessageResponse)
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.reset_token == data.token).first()
    if user is None or user.reset_token_expiry is None or utc_now() >= user.reset_token_expiry:
        raise ValidationFailure('Invalid or expired reset token')

    user.password_hash = hash_password(data.password)
    user.reset_token = None
    user.reset_token_expiry = None
    commit(db)

    return MessageResponse(message='Password has been reset successfully')
