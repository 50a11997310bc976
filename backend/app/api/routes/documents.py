"""
Documents API routes
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, UploadFile, File, Form, status
from pydantic import BaseModel

from app.api.deps import get_current_user_id, get_document_service, get_extracting_document_service
from app.api.routes.claims import ExtractedFieldResponse, to_field_response
from app.db.models import ClaimDocument
from app.services.documents import DocumentService

router = APIRouter()


class DocumentResponse(BaseModel):
    document_id: str
    claim_id: str
    file_name: str
    document_type: str
    content_type: str
    file_size_bytes: int
    uploaded_by: str
    uploaded_at: str
    document_status: str


def to_document_response(document: ClaimDocument) -> DocumentResponse:
    return DocumentResponse(
        document_id=str(document.document_id),
        claim_id=str(document.claim_id),
        file_name=document.file_name,
        document_type=document.document_type,
        content_type=document.content_type,
        file_size_bytes=document.file_size_bytes,
        uploaded_by=document.uploaded_by,
        uploaded_at=document.uploaded_at.isoformat(),
        document_status=document.document_status,
    )


@router.post(
    "/{claim_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    claim_id: UUID,
    document_type: str = Form(...),
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    """Upload a document for a claim."""
    content = await file.read()
    document = await service.upload_document(
        claim_id=claim_id,
        file_name=file.filename or "upload",
        document_type=document_type,
        content=content,
        content_type=file.content_type or "application/octet-stream",
        uploaded_by=user_id,
    )
    return to_document_response(document)


@router.get("/{claim_id}/documents", response_model=List[DocumentResponse])
async def list_documents(
    claim_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return [to_document_response(d) for d in service.list_documents(claim_id)]


@router.post("/{claim_id}/documents/{document_id}/extract", response_model=List[ExtractedFieldResponse])
async def extract_document_fields(
    claim_id: UUID,
    document_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_extracting_document_service),
):
    """Run AI extraction. Results are Unverified until a reviewer acts on them."""
    fields = await service.extract_fields(claim_id, document_id, actor=user_id)
    return [to_field_response(f) for f in fields]
