from passlib.context import CryptContext
from datetime import datetime, timedelta
import jwt
from typing import Tuple
from enielexpress.core.config import settings
from enielexpress.services.helpers import now_utc

pwd_ctx = CryptContext(schemes=['bcrypt'], deprecated='auto')

def hash_password(p: str) -> str: return pwd_ctx.hash(p)

def verify_password(p: str, h: str) -> bool: return pwd_ctx.verify(p, h)

def create_access_token(user_id: str, email: str) -> Tuple[str, datetime]:
    exp = now_utc() + timedelta(days=settings.ACCESS_TOKEN_EXPIRES_DAYS)
    payload = {'sub': user_id, 'email': email, 'exp': exp, 'type': 'access'}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM), exp

def create_reset_token(user_id: str) -> Tuple[str, datetime]:
    exp = now_utc() + timedelta(minutes=settings.RESET_TOKEN_EXPIRES_MINUTES)
    payload = {'sub': user_id, 'exp': exp, 'type': 'reset'}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM), exp

def decode_token(token: str):
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
