"""User administration endpoints (admin only)"""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskmanager.database import get_db
from taskmanager.dependencies import get_storage, require_admin
from taskmanager.errors import ConflictError, NotFoundError, ValidationError
from taskmanager.models import Task, TaskAttachment, User
from taskmanager.query import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, MAX_PAGE
from taskmanager.schemas import Envelope, Pagination, UserCreate, UserData, UserListData, UserResponse, UserUpdate
from taskmanager.security import get_password_hash
from taskmanager.storage import AttachmentStorage
from taskmanager.utils.time_utils import utc_now
from taskmanager.api.v1.auth import DUPLICATE_EMAIL_MESSAGE, create_user_account

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=Envelope[UserListData])
def list_users(
    page: int = Query(DEFAULT_PAGE, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    total = db.query(func.count(User.id)).scalar()
    users = (
        db.query(User)
        .order_by(User.created_at.desc(), User.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return Envelope(
        data=UserListData(
            users=[UserResponse.model_validate(user) for user in users],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.post("", response_model=Envelope[UserData], status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = create_user_account(db, user_in.email, user_in.password, role=user_in.role)
    logger.info("Admin %s created user %s", admin.id, user.id)
    return Envelope(message="User created successfully", data=UserData(user=UserResponse.model_validate(user)))


@router.put("/{user_id}", response_model=Envelope[UserData])
def update_user(
    user_id: str,
    user_update: UserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    update_data = user_update.model_dump(exclude_unset=True)
    if not update_data:
        raise ValidationError("No fields to update")

    user = _get_user_or_404(db, user_id)

    email = update_data.get("email")
    if email is not None and email != user.email:
        taken = db.query(User.id).filter(User.email == email, User.id != user.id).first()
        if taken:
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
        user.email = email
    if "password" in update_data:
        user.password_hash = get_password_hash(update_data["password"])
    if "role" in update_data:
        user.role = update_data["role"]
    user.updated_at = utc_now()

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
    db.refresh(user)

    logger.info("Admin %s updated user %s (%s)", admin.id, user.id, ", ".join(sorted(update_data)))
    return Envelope(message="User updated successfully", data=UserData(user=UserResponse.model_validate(user)))


@router.delete("/{user_id}", response_model=Envelope)
def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: AttachmentStorage = Depends(get_storage),
):
    """Delete a user; their tasks go with them and their assignments are cleared."""
    user = _get_user_or_404(db, user_id)

    stored_paths = [
        path
        for (path,) in db.query(TaskAttachment.file_path)
        .join(Task, TaskAttachment.task_id == Task.id)
        .filter(Task.created_by == user.id)
        .all()
    ]

    db.delete(user)
    db.commit()
    storage.remove_all(stored_paths)

    logger.info("Admin %s deleted user %s (%d stored file(s) removed)", admin.id, user_id, len(stored_paths))
    return Envelope(message="User deleted successfully")
