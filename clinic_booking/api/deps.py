from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional, Iterable

from ..core.database import get_db
from ..core.exceptions import Forbidden
from ..core.security import (
    security, verify_token, AuthenticationError, UserRole, TokenPayload
)
from ..models.user import User
from ..services.gateway import PersistenceGateway

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    # Verify token
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    # Check if token is access token
    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = PersistenceGateway(db).find_user(token_payload.sub)
    if not user:
        raise AuthenticationError("User not found")

    return user

# Role-based access control dependencies
def require_role(allowed_roles: Iterable[UserRole] = ()):
    """
    Create a dependency that requires specific user roles.

    An empty role set admits any authenticated user.
    """
    allowed = frozenset(allowed_roles)

    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if allowed and current_user.role not in allowed:
            raise Forbidden(
                f"Access denied. Required roles: {sorted(role.value for role in allowed)}"
            )
        return current_user

    return role_checker

# Specific role dependencies
get_any_user = require_role()
get_patient_user = require_role([UserRole.PATIENT])

# Optional authentication (for public endpoints that may benefit from user context)
def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, None otherwise."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token_payload = verify_token(auth_header.split(" ", 1)[1])
    if not token_payload or not token_payload.sub:
        return None

    return PersistenceGateway(db).find_user(token_payload.sub)
