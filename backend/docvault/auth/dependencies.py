"""FastAPI dependencies for authentication and authorization.

Usage:
    @router.get("/documents")
    def list_documents(principal: Principal = Depends(get_current_principal)):
        ...

    @router.post("/documents/upload")
    def upload(user: User = Depends(require_role(UserRole.MANAGER))):
        ...
"""

from typing import Annotated, Callable
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain.access import Principal, principal_for
from ..models.user import User
from .jwt import decode_token
from .roles import UserRole, has_permission


# HTTP Bearer token security scheme
security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Validate the bearer token and load the authenticated user.

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or user not found
    """
    try:
        payload = decode_token(credentials.credentials)
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise _unauthorized("Invalid token: missing user ID claim")
        user_id = UUID(user_id_str)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(str(e))
    except ValueError as e:
        raise _unauthorized(f"Invalid token claims: {str(e)}")

    user = db.get(User, user_id)
    if not user:
        raise _unauthorized("User not found")

    return user


def require_role(required_role: UserRole) -> Callable:
    """Create a dependency that enforces the role hierarchy.

    Example:
        @router.get("/stats/dashboard")
        def dashboard(user: User = Depends(require_role(UserRole.ADMIN))):
            ...
    """

    def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        try:
            user_role = UserRole(current_user.role)
        except ValueError:
            # Invalid role in database (should never happen due to CHECK constraint)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Invalid user role: {current_user.role}",
            )

        if not has_permission(user_role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required_role.value}",
            )

        return current_user

    return role_dependency


def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    """Access-control principal for the authenticated user."""
    return principal_for(current_user)


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
