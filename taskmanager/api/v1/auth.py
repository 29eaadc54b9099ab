"""Authentication endpoints"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskmanager.config import Settings
from taskmanager.database import get_db
from taskmanager.dependencies import get_app_settings, get_current_user
from taskmanager.errors import AuthenticationError, ConflictError
from taskmanager.models import User, UserRole
from taskmanager.schemas import AuthData, Envelope, UserData, UserLogin, UserRegister, UserResponse
from taskmanager.security import create_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"


def create_user_account(db: Session, email: str, password: str, role: UserRole = UserRole.USER) -> User:
    """Insert a new user, mapping an email uniqueness violation onto a conflict."""
    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    user = User(email=email, password_hash=get_password_hash(password), role=role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same email.
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
    db.refresh(user)
    logger.info("User created: %s (%s, role=%s)", user.email, user.id, user.role.value)
    return user


@router.post("/register", response_model=Envelope[AuthData], status_code=status.HTTP_201_CREATED)
def register(
    user_in: UserRegister,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Create a member account and return it with an access token."""
    user = create_user_account(db, user_in.email, user_in.password)
    token = create_access_token(user.id, settings)
    return Envelope(
        message="User registered successfully",
        data=AuthData(user=UserResponse.model_validate(user), token=token),
    )


@router.post("/login", response_model=Envelope[AuthData])
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info("Failed login attempt for %s", credentials.email)
        raise AuthenticationError("Invalid email or password")

    token = create_access_token(user.id, settings)
    return Envelope(
        message="Login successful",
        data=AuthData(user=UserResponse.model_validate(user), token=token),
    )


@router.get("/me", response_model=Envelope[UserData])
def read_current_user(current_user: User = Depends(get_current_user)):
    return Envelope(data=UserData(user=UserResponse.model_validate(current_user)))
