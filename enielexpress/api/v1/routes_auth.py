import logging
from typing import Any

import jwt
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from enielexpress.api import validation as rules
from enielexpress.api.deps import auth_rate_limit, get_current_user, get_db
from enielexpress.api.validation import validated
from enielexpress.api.v1.schemas import (
    RegisterPayload,
    LoginPayload,
    ProfileUpdate,
    PasswordChange,
    ForgotPassword,
    ResetPassword,
    UserRead,
)
from enielexpress.core.errors import NotFound, Unauthorized, ValidationError
from enielexpress.db.models import User
from enielexpress.security.utils import (
    hash_password,
    verify_password,
    create_access_token,
    create_reset_token,
    decode_token,
)
from enielexpress.services.helpers import now_utc

logger = logging.getLogger(__name__)

router = APIRouter()  # main.py mounts at /api/auth

RESET_SENT = 'If an account with that email exists, a password reset link has been sent'


def _by_email(db: Session, email: str):
    return db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()


@router.post("/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(auth_rate_limit)])
def register(payload: RegisterPayload = Depends(validated(RegisterPayload, rules.REGISTER)),
             db: Session = Depends(get_db)) -> Any:
    email = str(payload.email).lower()
    if _by_email(db, email):
        raise ValidationError('User with this email already exists')

    user = User(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        phone=payload.phone.strip() if payload.phone else None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    token, _ = create_access_token(user.id, user.email)
    return {"message": "User registered successfully", "token": token, "user": UserRead.model_validate(user)}


@router.post("/login", dependencies=[Depends(auth_rate_limit)])
def login(payload: LoginPayload = Depends(validated(LoginPayload, rules.LOGIN)),
          db: Session = Depends(get_db)) -> Any:
    user = _by_email(db, str(payload.email))
    if not user or not verify_password(payload.password, user.password_hash):
        raise Unauthorized('Invalid credentials')
    if not user.is_active:
        raise Unauthorized('Account is deactivated.')

    user.last_login = now_utc()
    db.commit()

    token, _ = create_access_token(user.id, user.email)
    return {"message": "Login successful", "token": token, "user": UserRead.model_validate(user)}


@router.get("/me")
def me(user: User = Depends(get_current_user)) -> Any:
    return {"user": UserRead.model_validate(user)}


@router.put("/profile")
def update_profile(payload: ProfileUpdate = Depends(validated(ProfileUpdate, rules.PROFILE_UPDATE)),
                   user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Any:
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(user, k, v.strip() if isinstance(v, str) else v)
    db.commit()
    db.refresh(user)
    return {"message": "Profile updated successfully", "user": UserRead.model_validate(user)}


@router.put("/password")
def change_password(payload: PasswordChange = Depends(validated(PasswordChange, rules.PASSWORD_CHANGE)),
                    user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Any:
    if not verify_password(payload.current_password, user.password_hash):
        raise Unauthorized('Current password is incorrect')
    user.password_hash = hash_password(payload.new_password)
    db.commit()
    return {"message": "Password changed successfully"}


@router.post("/forgot-password")
def forgot_password(payload: ForgotPassword = Depends(validated(ForgotPassword, rules.FORGOT_PASSWORD)),
                    db: Session = Depends(get_db)) -> Any:
    user = _by_email(db, str(payload.email))
    if not user:
        return {"message": RESET_SENT}
    token, _ = create_reset_token(user.id)
    # no mail transport; the token is handed back directly
    logger.info("Password reset requested for user %s", user.id)
    return {"message": RESET_SENT, "resetToken": token}


@router.post("/reset-password")
def reset_password(payload: ResetPassword = Depends(validated(ResetPassword, rules.RESET_PASSWORD)),
                   db: Session = Depends(get_db)) -> Any:
    try:
        claims = decode_token(payload.token)
    except jwt.PyJWTError:
        raise Unauthorized('Invalid or expired token')
    if claims.get('type') != 'reset':
        raise Unauthorized('Invalid or expired token')

    user = db.get(User, claims.get('sub'))
    if not user:
        raise NotFound('Invalid or expired token')
    user.password_hash = hash_password(payload.new_password)
    db.commit()
    return {"message": "Password reset successful"}
