import logging
from datetime import timedelta
from urllib.parse import urlencode

import jwt
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from bnoverseas.auth import jwt_handler
from bnoverseas.auth.cookies import clear_auth_cookie, clear_session_cookie, set_auth_cookie, set_session_cookie
from bnoverseas.auth.credentials import authenticate_credentials, find_user_by_email, normalize_email
from bnoverseas.auth.dependencies import get_current_user
from bnoverseas.auth.passwords import generate_otp, generate_secure_token, hash_password
from bnoverseas.auth.resolvers import SessionCookieResolver, extract_bearer_token, load_user
from bnoverseas.core import config
from bnoverseas.core.errors import AuthenticationRequired, Conflict
from bnoverseas.core.utils import utc_now
from bnoverseas.database import commit, get_db, get_session_factory
from bnoverseas.models.user import User, UserRole
from bnoverseas.models.user_profile import UserProfile
from bnoverseas.routes.schemas import CamelModel, MessageResponse, TokenResponse, UserResponse
from bnoverseas.services.email import EmailDeliveryError, EmailType, send_templated_email
from bnoverseas.services.sessions import client_ip, record_session, revoke_session, touch_last_login

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class RegisterRequest(CamelModel):
    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)
    email: EmailStr
    password: str = Field(min_length=8)
    phone: str | None = None
    country: str | None = None
    study_level: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email_address(cls, value: str) -> str:
        return normalize_email(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator('email')
    @classmethod
    def normalize_email_address(cls, value: str) -> str:
        return normalize_email(value)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class RegisterResponse(TokenResponse):
    requires_verification: bool


class SessionUserResponse(CamelModel):
    user: UserResponse | None = None


class MeResponse(CamelModel):
    success: bool = True
    user: UserResponse


def _token_response(user: User, token: str, refresh_token: str, message: str) -> TokenResponse:
    return TokenResponse(
        user=UserResponse.model_validate(user),
        token=token,
        refresh_token=refresh_token,
        message=message,
    )


@router.post('/register', response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    if find_user_by_email(db, data.email) is not None:
        raise Conflict('User with this email already exists')

    send_otp = config.email_configured()
    now = utc_now()

    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=hash_password(data.password),
        phone=data.phone,
        country=data.country,
        study_level=data.study_level,
        role=UserRole.STUDENT,
        verification_token=generate_secure_token(),
        verification_otp=generate_otp() if send_otp else None,
        otp_expiry=now + timedelta(minutes=config.OTP_EXPIRES_MINUTES) if send_otp else None,
        is_verified=not send_otp,
        email_verified_at=None if send_otp else now,
    )
    user.profile = UserProfile(interested_countries=[data.country] if data.country else [])

    db.add(user)
    try:
        commit(db)
    except IntegrityError as exc:
        raise Conflict('User with this email already exists') from exc
    db.refresh(user)

    token, refresh_token = jwt_handler.issue_token_pair(jwt_handler.claims_for(user))
    background_tasks.add_task(
        record_session,
        session_factory,
        user.id,
        token,
        request.headers.get('user-agent', ''),
        client_ip(request),
    )

    email_sent = False
    if send_otp:
        try:
            send_templated_email(
                user.email,
                EmailType.EMAIL_VERIFICATION,
                first_name=user.first_name,
                otp=user.verification_otp,
                expires_minutes=config.OTP_EXPIRES_MINUTES,
                verification_url=f"{config.APP_URL}/auth/verify-email?{urlencode({'email': user.email})}",
            )
            email_sent = True
        except EmailDeliveryError:
            logger.exception('Failed to send verification email to %s', user.email)

    set_auth_cookie(response, token)
    message = (
        'Account created successfully. Please check your email for the OTP verification code.'
        if email_sent
        else 'Account created successfully. You can start using the platform now.'
    )
    return RegisterResponse(
        user=UserResponse.model_validate(user),
        token=token,
        refresh_token=refresh_token,
        message=message,
        requires_verification=email_sent,
    )


@router.post('/login', response_model=TokenResponse)
def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    user = authenticate_credentials(db, data.email, data.password)

    token, refresh_token = jwt_handler.issue_token_pair(jwt_handler.claims_for(user))

    background_tasks.add_task(
        record_session,
        session_factory,
        user.id,
        token,
        request.headers.get('user-agent', ''),
        client_ip(request),
    )
    background_tasks.add_task(touch_last_login, session_factory, user.id)

    set_auth_cookie(response, token)
    logger.info('User %s logged in', user.email)
    return _token_response(user, token, refresh_token, 'Login successful')


@router.post('/signin', response_model=SessionUserResponse)
def signin(
    data: LoginRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    user = authenticate_credentials(db, data.email, data.password)

    claims = jwt_handler.claims_for(user)
    claims['name'] = user.full_name
    set_session_cookie(response, jwt_handler.issue_session_token(claims))
    background_tasks.add_task(touch_last_login, session_factory, user.id)

    logger.info('User %s signed in successfully', user.email)
    return SessionUserResponse(user=UserResponse.model_validate(user))


@router.post('/signout', response_model=MessageResponse)
def signout(response: Response):
    clear_session_cookie(response)
    return MessageResponse(message='Signed out')


@router.get('/session', response_model=SessionUserResponse)
def session(request: Request, db: Session = Depends(get_db)):
    user = SessionCookieResolver().resolve(request, db)
    if user is None:
        return SessionUserResponse(user=None)
    return SessionUserResponse(user=UserResponse.model_validate(user))


@router.post('/refresh', response_model=TokenResponse)
def refresh(data: RefreshRequest, response: Response, db: Session = Depends(get_db)):
    try:
        payload = jwt_handler.decode_refresh_token(data.refresh_token)
    except jwt.InvalidTokenError as exc:
        raise AuthenticationRequired('Invalid refresh token') from exc

    user = load_user(db, payload['sub'])
    if user is None:
        raise AuthenticationRequired('Invalid refresh token')

    token, refresh_token = jwt_handler.issue_token_pair(jwt_handler.claims_for(user))
    set_auth_cookie(response, token)
    return _token_response(user, token, refresh_token, 'Token refreshed')


@router.post('/logout', response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    token = extract_bearer_token(request)
    if token:
        revoke_session(db, current_user.id, token)

    clear_auth_cookie(response)
    return MessageResponse(message='Logout successful')


@router.get('/me', response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)):
    return MeResponse(user=UserResponse.model_validate(current_user))
