from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db as db_session
from app.errors import AuthenticationError
from app.services.authorization import require_role
from app.services.tokens import TokenClaims, verify_token

bearer_scheme = HTTPBearer(auto_error=False)

def get_db(db: AsyncSession = Depends(db_session)):
    return db

async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenClaims:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required", reason="Unauthenticated")

    identity = verify_token(credentials.credentials)
    request.state.identity = identity
    return identity

def roles_allowed(*roles):
    """Dependency that authenticates the caller and checks their role."""
    async def checker(identity: TokenClaims = Depends(get_current_identity)) -> TokenClaims:
        require_role(identity, roles)
        return identity
    return checker
