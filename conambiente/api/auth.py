import hmac
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from fastapi import APIRouter, Depends, Header, Request

from conambiente.api.deps import get_settings
from conambiente.api.errors import InvalidCredentials, InvalidToken, MissingToken
from conambiente.api.payload import read_payload
from conambiente.utils.settings import Settings
from conambiente.utils.tz_utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

ALGORITHM = "HS256"
ADMIN_USER_ID = "admin1"
ADMIN_ROLE = "admin"


def _same(a: Optional[str], b: Optional[str]) -> bool:
    if not isinstance(a, str) or not isinstance(b, str) or not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def issue_token(settings: Settings, now: Optional[datetime] = None) -> str:
    now = now or utc_now()
    payload = {
        "userId": ADMIN_USER_ID,
        "email": settings.admin_email,
        "role": ADMIN_ROLE,
        "iat": now,
        "exp": now + timedelta(hours=settings.token_ttl_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def login(settings: Settings, email: Optional[str], password: Optional[str]) -> str:
    """Único admin, credenciales fijas del entorno. Devuelve el token o lanza InvalidCredentials."""
    if not (_same(email, settings.admin_email) and _same(password, settings.admin_password)):
        raise InvalidCredentials()
    return issue_token(settings)


def decode_token(settings: Settings, token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        raise InvalidToken()


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Dependencia para las rutas que modifican noticias/proyectos."""
    if not authorization or not authorization.startswith("Bearer "):
        raise MissingToken()
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise MissingToken()
    principal = decode_token(settings, token)
    request.state.user = principal
    return principal


@router.post("/login")
async def api_login(request: Request, settings: Settings = Depends(get_settings)):
    data, _ = await read_payload(request)
    try:
        token = login(settings, data.get("email"), data.get("password"))
    except InvalidCredentials:
        logger.info("Login rechazado: credenciales no coinciden")
        raise
    return {"token": token, "user": {"email": settings.admin_email, "role": ADMIN_ROLE}}
