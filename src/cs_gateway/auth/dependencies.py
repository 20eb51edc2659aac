"""FastAPI dependency: get_current_identity.

Usage in any protected router:
    from src.cs_gateway.auth.dependencies import get_current_identity

    @router.post("/protected")
    async def protected(identity: str = Depends(get_current_identity)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.cs_common.errors import InvalidCredentialsError
from src.cs_gateway.auth.jwt_handler import decode_token

# Tokens come from an external issuer; tokenUrl only feeds the Swagger UI button.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_identity(token: str = Depends(oauth2_scheme)) -> str:
    """Return the caller identity (`sub`) of a valid Bearer token, else HTTP 401."""
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    identity = payload.get("sub")
    if not identity:
        raise _CREDENTIALS_EXCEPTION
    return identity
