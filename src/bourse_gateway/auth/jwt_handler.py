"""Bearer token verification.

Tokens are issued by the external identity provider; this service only
verifies them. Expected claims:
    sub   caller id (buyer or operator)
    role  "buyer" | "operator"  (missing -> buyer)
    exp   expiry
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.bourse_common.enums import CallerRole
from src.bourse_common.errors import InvalidCredentialsError


@dataclass(frozen=True)
class Caller:
    id: str
    role: CallerRole

    @property
    def is_operator(self) -> bool:
        return self.role is CallerRole.OPERATOR


def decode_token(token: str) -> Caller:
    """Decode and validate a bearer token. Raises InvalidCredentialsError."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],  # explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    subject = payload.get("sub")
    if not subject:
        raise InvalidCredentialsError()
    try:
        role = CallerRole(payload.get("role", CallerRole.BUYER.value))
    except ValueError:
        raise InvalidCredentialsError() from None
    return Caller(id=str(subject), role=role)


def create_token(caller_id: str, role: CallerRole, expires_minutes: int = 30) -> str:
    """Mint a token with the shared secret (local tooling and tests)."""
    now = datetime.now(UTC)
    payload = {
        "sub": caller_id,
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))
