"""Schemas for task attachments"""
from datetime import datetime
from typing import List

from pydantic import BaseModel


class AttachmentResponse(BaseModel):
    id: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    created_at: datetime

    class Config:
        from_attributes = True


class AttachmentListData(BaseModel):
    attachments: List[AttachmentResponse]
