"""FastAPI dependency: get_current_principal.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_current_principal

    @router.post("/protected")
    async def protected(principal: str = Depends(get_current_principal)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import decode_token

# Tokens are issued upstream; tokenUrl only feeds the Swagger "Authorize" button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_principal(token: str = Depends(oauth2_scheme)) -> str:
    """Validate the Bearer token and return the caller's principal id.

    Raises HTTP 401 if the token is missing, invalid, expired or has no subject.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    principal = payload.get("sub")
    if not principal:
        raise _CREDENTIALS_EXCEPTION
    return principal
