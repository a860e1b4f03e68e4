"""FastAPI dependencies: get_current_caller / require_operator.

Usage in any protected router:
    from src.bourse_gateway.auth.dependencies import get_current_caller

    @router.get("/protected")
    async def protected(caller: Annotated[Caller, Depends(get_current_caller)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.bourse_common.errors import InvalidCredentialsError, OperatorRequiredError
from src.bourse_gateway.auth.jwt_handler import Caller, decode_token

_bearer = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Caller:
    """Extract and validate the Bearer token. Raises HTTP 401 when missing or invalid."""
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        return decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None


async def require_operator(caller: Caller = Depends(get_current_caller)) -> Caller:
    """Admin endpoints: the caller's token must carry role=operator."""
    if not caller.is_operator:
        raise OperatorRequiredError()
    return caller
