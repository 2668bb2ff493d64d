from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from app.models.user import User, ROLE_USER
from app.schemas.auth import UserRegister, UserLogin, UserResponse
from app.utils.security import hash_password, verify_password, create_access_token
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
USER_EXISTS = "User already exists"


class AuthService:
    @staticmethod
    def _issue(user: User) -> dict:
        return {
            "token": create_access_token(user_id=user.id, role=user.role),
            "user": UserResponse.model_validate(user),
        }

    @staticmethod
    def register_user(db: Session, user_data: UserRegister) -> dict:
        # Check existing email
        existing_user = db.query(User).filter(User.email == user_data.email).first()
        if existing_user:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USER_EXISTS)

        # New accounts always start with the user role
        new_user = User(
            email=user_data.email,
            password_hash=hash_password(user_data.password),
            name=user_data.name,
            role=ROLE_USER
        )
        db.add(new_user)
        try:
            db.commit()
        except IntegrityError:
            # Lost the race against a concurrent registration for the same email
            db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USER_EXISTS)
        db.refresh(new_user)

        logger.info(f"User registered: id={new_user.id}")
        return AuthService._issue(new_user)

    @staticmethod
    def login_user(db: Session, credentials: UserLogin) -> dict:
        user = db.query(User).filter(User.email == credentials.email).first()

        if not user:
            logger.warning(f"Login failed: User not found with email {credentials.email}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

        if not verify_password(credentials.password, str(user.password_hash)):
            logger.warning(f"Login failed: Incorrect password for email {credentials.email}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

        return AuthService._issue(user)
