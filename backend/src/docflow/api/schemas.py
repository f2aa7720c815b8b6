"""Pydantic schemas for the document API."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..workflow.status import DocumentStatus, EffectiveStatus
from ..workflow.transitions import WorkflowAction


class TransitionRequest(BaseModel):
    """Body of POST /documents/{id}/transitions"""
    action: WorkflowAction = Field(..., description="submit, approve, reject, withdraw or obsolete")
    comment: Optional[str] = Field(None, max_length=2000, description="Required when rejecting")

    model_config = ConfigDict(extra='forbid')


class TransitionResponse(BaseModel):
    id: UUID
    status: DocumentStatus
    from_status: DocumentStatus
    version: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreateDocumentRequest(BaseModel):
    """Body of POST /documents"""
    folder_id: UUID
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    expiry_date: Optional[datetime] = None

    model_config = ConfigDict(extra='forbid')


class DocumentResponse(BaseModel):
    id: UUID
    folder_id: UUID
    document_number: str
    title: str
    status: DocumentStatus
    version: int
    description: Optional[str] = None
    expiry_date: Optional[datetime] = None
    current_version_id: Optional[UUID] = None
    supersedes_id: Optional[UUID] = None
    superseded_by_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class VersionRequest(BaseModel):
    """Metadata of a payload already placed in object storage."""
    file_name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1, max_length=255)
    size_bytes: int = Field(..., ge=0)
    storage_key: str = Field(..., min_length=1)

    model_config = ConfigDict(extra='forbid')


class VersionResponse(BaseModel):
    id: UUID
    document_id: UUID
    version_number: int
    file_name: str
    mime_type: str
    size_bytes: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AcknowledgementResponse(BaseModel):
    id: UUID
    document_id: UUID
    version_id: UUID
    user_id: UUID
    acknowledged_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EffectiveStatusResponse(BaseModel):
    id: UUID
    status: DocumentStatus = Field(..., description="Stored status")
    effective_status: EffectiveStatus = Field(..., description="Status with expiry applied")
    expiry_date: Optional[datetime] = None
