"""Pydantic schemas for audit entries.

Audit metadata is a closed, versioned map: only the fields declared on
AuditMetadata may be stored, and every entry records the schema version it
was written with.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

AUDIT_METADATA_VERSION = 1


class AuditAction:
    """Audit action names written by the core."""
    PERMISSION_DENIED = "PERMISSION_DENIED"
    DOCUMENT_CREATED = "DMS.DOCUMENT_CREATED"
    REVISION_CREATED = "DMS.REVISION_CREATED"
    VERSION_CREATED = "DMS.VERSION_CREATE"
    ACKNOWLEDGED = "DMS.ACKNOWLEDGED"


class AuditEntityType:
    DOCUMENT = "DOCUMENT"
    VERSION = "VERSION"
    FOLDER = "FOLDER"
    TENANT = "TENANT"


class AuditMetadata(BaseModel):
    """Known optional metadata fields of an audit entry."""
    schema_version: int = Field(AUDIT_METADATA_VERSION, description="Metadata schema version")
    workflow_action: Optional[str] = Field(None, description="Workflow action name (submit, approve, ...)")
    from_status: Optional[str] = Field(None, description="Stored status before a transition")
    to_status: Optional[str] = Field(None, description="Stored status after a transition")
    comment: Optional[str] = Field(None, description="Free text supplied by the actor")
    permission_code: Optional[str] = Field(None, description="Permission code that was checked")
    decision_reason: Optional[str] = Field(None, description="Resolver reason for a denial")
    folder_id: Optional[UUID] = Field(None, description="Folder the check was scoped to")
    document_number: Optional[str] = Field(None, description="Human readable document number")
    original_document_id: Optional[UUID] = Field(None, description="Revised (superseded) document")
    new_document_id: Optional[UUID] = Field(None, description="Newly created revision")
    version_id: Optional[UUID] = Field(None, description="Document version involved")
    version_number: Optional[int] = Field(None, description="Document version number")
    file_name: Optional[str] = Field(None, description="Original file name of a version")

    class Config:
        extra = "forbid"
        frozen = True

    def to_json(self) -> dict:
        """Serialize to the JSON stored in audit_log.metadata_json."""
        return self.model_dump(mode="json", exclude_none=True)
