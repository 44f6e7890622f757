from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
import logging

from ..models.user import User
from ..core.security import (
    verify_password, get_password_hash, create_user_token, UserRole
)
from ..schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse
from .gateway import PersistenceGateway

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.gateway = PersistenceGateway(db)

    def register_user(self, user_data: UserRegister) -> User:
        """Register a new user; doctors get their profile in the same transaction."""
        # Check if user already exists
        if self.gateway.find_user_by_email(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        new_user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role
        )
        specialty = user_data.specialty.strip() if user_data.role == UserRole.DOCTOR else None

        try:
            self.gateway.insert_user(new_user, specialty)
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        logger.info(f"Registered {new_user.role.value} user {new_user.id}")
        return new_user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return an access token."""
        user = self.gateway.find_user_by_email(login_data.email)

        if not user or not verify_password(login_data.password, user.password_hash):
            logger.info(f"Failed login for {login_data.email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        token = create_user_token(user.id, user.email, user.role)

        return TokenResponse(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
            user=UserResponse.from_orm(user)
        )
