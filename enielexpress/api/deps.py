from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
import jwt

from enielexpress.core.config import settings
from enielexpress.core.errors import Unauthorized, Forbidden, RateLimited
from enielexpress.core.ratelimit import RateLimiter, get_client, limit_key
from enielexpress.db.session import SessionLocal
from enielexpress.db.models import User, UserRole
from enielexpress.security.utils import decode_token
from enielexpress.services.paystack import PaystackClient
from enielexpress.services.whatsapp import WhatsAppClient

security = HTTPBearer(auto_error=False)

def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(security), db: Session = Depends(get_db)) -> User:
    if not creds: raise Unauthorized('Access denied. No token provided.')
    try:
        payload = decode_token(creds.credentials)
    except jwt.ExpiredSignatureError:
        raise Unauthorized('Token expired.')
    except jwt.PyJWTError:
        raise Unauthorized('Invalid token.')
    if payload.get('type') != 'access':
        raise Unauthorized('Invalid token.')
    user = db.get(User, payload.get('sub'))
    if not user: raise Unauthorized('Invalid token. User not found.')
    if not user.is_active: raise Unauthorized('Account is deactivated.')
    return user

def require_role(required: UserRole):
    def _checker(user: User = Depends(get_current_user)):
        if user.role != required:
            raise Forbidden('Access denied. Admin privileges required.')
        return user
    return _checker

require_admin = require_role(UserRole.ADMIN)

def get_messenger(request: Request) -> WhatsAppClient:
    return request.app.state.messenger

def get_payment_gateway(request: Request) -> PaystackClient:
    return request.app.state.payment_gateway

def get_rate_limiter() -> RateLimiter:
    return RateLimiter(get_client(), settings.AUTH_RATE_LIMIT, settings.AUTH_RATE_WINDOW_SECONDS)

def auth_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    source = request.client.host if request.client else 'unknown'
    if not limiter.hit(limit_key('auth', source)):
        raise RateLimited('Too many authentication attempts, please try again later.')
