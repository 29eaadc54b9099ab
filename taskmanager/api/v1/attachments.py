"""Task attachment endpoints"""
import logging
from pathlib import PurePath
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskmanager.config import Settings
from taskmanager.database import get_db
from taskmanager.dependencies import get_app_settings, get_current_user, get_storage
from taskmanager.errors import NotFoundError, ValidationError
from taskmanager.models import TaskAttachment, User
from taskmanager.schemas import AttachmentListData, AttachmentResponse, Envelope
from taskmanager.storage import AttachmentStorage
from taskmanager.api.v1.lookups import load_mutable_task

logger = logging.getLogger(__name__)

router = APIRouter()

PDF_MIME_TYPE = "application/pdf"


def _validate_uploads(files: List[UploadFile], max_files: int) -> None:
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > max_files:
        raise ValidationError(f"Too many files. Maximum {max_files} files per upload")
    for upload in files:
        if upload.content_type != PDF_MIME_TYPE:
            raise ValidationError("Only PDF files are allowed")


def _original_name(upload: UploadFile) -> str:
    # Keep only the final path component of the client-supplied name.
    return PurePath(upload.filename.replace("\\", "/")).name[:255] or "attachment.pdf"


@router.post("/{task_id}/attachments", response_model=Envelope[AttachmentListData])
def upload_attachments(
    task_id: str,
    files: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: AttachmentStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    """Attach up to three PDF files to a task.

    Existence and ownership are checked before the files are inspected. The
    task row is locked while the existing attachments are counted and the new
    rows inserted. On backends with row locks (PostgreSQL, MySQL) this keeps
    concurrent uploads to one task under the per-task cap; SQLite ignores
    ``FOR UPDATE``, so two racing uploads there can still both pass the count.
    """
    task = load_mutable_task(db, task_id, current_user, lock=True)

    files = [upload for upload in files or [] if upload.filename]
    max_attachments = settings.MAX_ATTACHMENTS_PER_TASK
    _validate_uploads(files, max_attachments)

    existing = (
        db.query(func.count(TaskAttachment.id))
        .filter(TaskAttachment.task_id == task.id)
        .scalar()
    )
    if existing + len(files) > max_attachments:
        db.rollback()
        raise ValidationError(f"Maximum {max_attachments} attachments allowed per task")

    stored = []
    try:
        for upload in files:
            stored.append((upload, storage.save(upload.file)))
    except Exception:
        db.rollback()
        storage.remove_all(item.path for _, item in stored)
        raise

    attachments = [
        TaskAttachment(
            task_id=task.id,
            filename=item.filename,
            original_name=_original_name(upload),
            mime_type=upload.content_type,
            size=item.size,
            file_path=str(item.path),
        )
        for upload, item in stored
    ]
    db.add_all(attachments)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(
            "Could not record attachments for task %s; stored files left behind: %s",
            task.id,
            ", ".join(item.filename for _, item in stored),
        )
        raise

    logger.info("Stored %d attachment(s) on task %s for user %s", len(attachments), task.id, current_user.id)
    return Envelope(
        message="Files uploaded successfully",
        data=AttachmentListData(attachments=[AttachmentResponse.model_validate(a) for a in attachments]),
    )


@router.get("/{task_id}/attachments/{filename}")
def download_attachment(
    task_id: str,
    filename: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: AttachmentStorage = Depends(get_storage),
):
    task = load_mutable_task(db, task_id, current_user)

    attachment = (
        db.query(TaskAttachment)
        .filter(TaskAttachment.task_id == task.id, TaskAttachment.filename == filename)
        .first()
    )
    if attachment is None:
        raise NotFoundError("File not found")
    if not storage.exists(attachment.file_path):
        logger.warning("Attachment %s is recorded but missing from storage", attachment.id)
        raise NotFoundError("File not found on disk")

    return FileResponse(
        attachment.file_path,
        media_type=attachment.mime_type,
        filename=attachment.original_name,
    )
