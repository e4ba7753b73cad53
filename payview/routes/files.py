from fastapi import APIRouter, Depends, File as FileParam, UploadFile, status
from sqlmodel import Session

from payview.database import get_session
from payview.dependencies.services import get_gateway, get_storage_client
from payview.exceptions import NotFoundError
from payview.schemas.file_schemas import (
    CreateFileRecordsRequest,
    FileDetails,
    FileOut,
    ProvisionPriceRequest,
)
from payview.services.file_service import create_file_records, deactivate_file, provision_price
from payview.services.payment_gateway import PaymentGateway
from payview.services.read_models import file_details
from payview.services.storage import StorageClient
from payview.utils.token import Identity, get_current_identity

router = APIRouter()


@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = FileParam(...),
    identity: Identity = Depends(get_current_identity),
    storage: StorageClient = Depends(get_storage_client),
):
    """Store the bytes; the returned key is then registered with POST /files."""
    key = storage.object_key(identity.user_id, file.filename or "upload")
    storage.upload(file.file, key, file.content_type)
    return {
        "fileUrl": key,
        "fileName": file.filename,
        "contentType": file.content_type,
        "fileSize": file.size,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_files(
    payload: CreateFileRecordsRequest,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    created = create_file_records(session, identity, payload)
    return {"created": [FileOut.model_validate(f) for f in created]}


@router.get("/{file_id}", response_model=FileDetails)
def get_file(file_id: int, session: Session = Depends(get_session)):
    details = file_details(session, file_id)
    if details is None:
        raise NotFoundError("File not found")
    return details


@router.post("/{file_id}/price", response_model=FileOut)
def set_price(
    file_id: int,
    payload: ProvisionPriceRequest,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    gateway: PaymentGateway = Depends(get_gateway),
):
    return provision_price(session, gateway, identity, file_id, payload.price_cents, payload.currency)


@router.delete("/{file_id}", response_model=FileOut)
def remove_file(
    file_id: int,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return deactivate_file(session, identity, file_id)
