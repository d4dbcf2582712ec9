from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from shared.auth.config import AuthSettings
from shared.constants import Role
from shared.models.user import CurrentUser

http_bearer = HTTPBearer(auto_error=False)

_KNOWN_ROLES = {r.value for r in Role}


def _decode_token(token: str, settings: AuthSettings) -> dict:
    payload = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        audience=settings.audience,
    )
    return payload


def _claim_roles(payload: dict) -> list[Role]:
    """Roles arrive either as a list (``roles``) or as a comma-separated
    Cognito custom attribute (``custom:roles``). Unknown roles are dropped."""
    raw = payload.get("roles")
    if raw is None:
        raw = payload.get("custom:roles") or ""
    if isinstance(raw, str):
        raw = [r.strip() for r in raw.split(",")]
    return [Role(r) for r in raw if r in _KNOWN_ROLES]


def payload_to_user(payload: dict) -> CurrentUser:
    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Missing sub in token")
    return CurrentUser(
        id=UUID(user_id),
        email=payload.get("email") or "",
        roles=_claim_roles(payload),
        tenant_id=payload.get("custom:tenant_id") or None,
    )


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: AuthSettings = Depends(lambda: AuthSettings()),
) -> CurrentUser | None:
    if not credentials or not credentials.credentials:
        return None
    token = credentials.credentials
    try:
        payload = _decode_token(token, settings)
        return payload_to_user(payload)
    except (JWTError, ValueError, KeyError):
        return None


async def get_current_user_required(
    user: CurrentUser | None = Depends(get_current_user_optional),
) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
