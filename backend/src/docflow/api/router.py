"""Documents API Router - workflow transitions, revisions, versions and acknowledgements.

Every endpoint delegates to DocumentWorkflowService; typed core errors are
turned into HTTP responses by api.errors.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..access.identity import IdentityContext
from ..documents.service import DocumentWorkflowService
from .dependencies import get_identity, get_workflow_service
from .schemas import (
    AcknowledgementResponse,
    CreateDocumentRequest,
    DocumentResponse,
    EffectiveStatusResponse,
    TransitionRequest,
    TransitionResponse,
    VersionRequest,
    VersionResponse,
)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft document",
)
def create_document(
    body: CreateDocumentRequest,
    identity: IdentityContext = Depends(get_identity),
    service: DocumentWorkflowService = Depends(get_workflow_service),
) -> DocumentResponse:
    document = service.create_document(
        identity,
        body.folder_id,
        body.title,
        description=body.description,
        expiry_date=body.expiry_date,
    )
    return DocumentResponse.model_validate(document)


@router.post(
    "/{document_id}/transitions",
    response_model=TransitionResponse,
    summary="Apply a workflow action",
    description="""
    Move a document through its workflow.

    **Actions:** submit (DRAFT → SUBMITTED), approve / reject / withdraw
    (from SUBMITTED), obsolete (from APPROVED).

    **Errors:** 403 permission denied, 404 unknown document, 409 invalid
    transition or concurrent update (retry), 422 domain rule violated.
    """
)
def transition_document(
    document_id: UUID,
    body: TransitionRequest,
    identity: IdentityContext = Depends(get_identity),
    service: DocumentWorkflowService = Depends(get_workflow_service),
) -> TransitionResponse:
    summary = service.execute_action(identity, document_id, body.action, comment=body.comment)
    return TransitionResponse.model_validate(summary)


@router.post(
    "/{document_id}/revisions",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a revision of an approved document",
)
def revise_document(
    document_id: UUID,
    identity: IdentityContext = Depends(get_identity),
    service: DocumentWorkflowService = Depends(get_workflow_service),
) -> DocumentResponse:
    revision = service.create_revision(identity, document_id)
    return DocumentResponse.model_validate(revision)


@router.post(
    "/{document_id}/versions",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an uploaded version",
)
def register_version(
    document_id: UUID,
    body: VersionRequest,
    identity: IdentityContext = Depends(get_identity),
    service: DocumentWorkflowService = Depends(get_workflow_service),
) -> VersionResponse:
    version = service.register_version(
        identity,
        document_id,
        file_name=body.file_name,
        mime_type=body.mime_type,
        size_bytes=body.size_bytes,
        storage_key=body.storage_key,
    )
    return VersionResponse.model_validate(version)


@router.post(
    "/{document_id}/acknowledgements",
    response_model=AcknowledgementResponse,
    summary="Acknowledge the current version of an approved document",
)
def acknowledge_document(
    document_id: UUID,
    identity: IdentityContext = Depends(get_identity),
    service: DocumentWorkflowService = Depends(get_workflow_service),
) -> AcknowledgementResponse:
    ack = service.acknowledge_document(identity, document_id)
    return AcknowledgementResponse.model_validate(ack)


@router.get(
    "/{document_id}/effective-status",
    response_model=EffectiveStatusResponse,
    summary="Stored and effective status of a document",
)
def get_effective_status(
    document_id: UUID,
    identity: IdentityContext = Depends(get_identity),
    service: DocumentWorkflowService = Depends(get_workflow_service),
) -> EffectiveStatusResponse:
    document, effective = service.effective_status(identity, document_id)
    return EffectiveStatusResponse(
        id=document.id,
        status=document.status,
        effective_status=effective,
        expiry_date=document.expiry_date,
    )
