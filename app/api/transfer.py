# app/api/transfer.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from pipeline import state
from pipeline.job_queue import JobQueue
from pipeline.repositories import FileRepository, FolderRepository
from services.errors import NotFound
from services.transfer_service import TransferService

logger = logging.getLogger("transfer.api")

router = APIRouter(prefix="/transfer", tags=["transfer"])


# =================================================
# Dependency
# =================================================


def get_transfer_service() -> TransferService:
    return TransferService(
        FolderRepository(),
        FileRepository(),
        state.queue or JobQueue(),
    )


# =================================================
# Request Models
# =================================================


class CreateFolderRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Source Drive folder URL")
    name: Optional[str] = Field(None, description="Display name until the scan finds one")


# =================================================
# Folders
# =================================================


@router.post("/folders", status_code=status.HTTP_201_CREATED)
def create_folder(
    body: CreateFolderRequest,
    service: TransferService = Depends(get_transfer_service),
):
    folder = service.create_folder_scan(body.url, body.name)
    return {"success": True, "data": folder.to_dict()}


@router.get("/folders")
def list_folders(service: TransferService = Depends(get_transfer_service)):
    return {"success": True, "data": [f.to_dict() for f in service.list_folders()]}


@router.get("/folders/{folder_id}/files")
def list_folder_files(
    folder_id: int,
    service: TransferService = Depends(get_transfer_service),
):
    try:
        files = service.list_folder_files(folder_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "data": [f.to_dict() for f in files]}


# =================================================
# Files
# =================================================


@router.post("/process-pending")
def process_pending(service: TransferService = Depends(get_transfer_service)):
    count = service.process_pending_files()
    return {
        "success": True,
        "count": count,
        "message": f"Queued {count} files for processing",
    }


@router.post("/retry-failed")
def retry_failed(service: TransferService = Depends(get_transfer_service)):
    result = service.retry_failed_files()
    return {
        "success": True,
        "count": result["count"],
        "files": result["files"],
        "message": f"Queued {result['count']} failed files for retry",
    }


@router.post("/files/{file_id}/retry")
def retry_file(
    file_id: int,
    service: TransferService = Depends(get_transfer_service),
):
    queued = service.retry_file(file_id)
    return {
        "success": queued,
        "message": (
            f"File {file_id} queued for retry" if queued
            else f"File {file_id} not found or not in failed status"
        ),
    }
