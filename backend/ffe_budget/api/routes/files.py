"""Explicit save / open routes."""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from ...api.dependencies import PersistenceDep, SessionDep, require_discard_confirmation
from ...models import APIResponse
from ...services.persistence import LoadedDocument, SavedDocument, suggested_filename
from ...utils import log_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/files", tags=["Files"])


class SaveRequest(BaseModel):
    """Request model for save / save-as."""
    filename: Optional[str] = None


class OpenRequest(BaseModel):
    """Request model for opening a saved document."""
    filename: Optional[str] = None
    confirm_discard: bool = False


def _saved_payload(saved: SavedDocument) -> dict:
    return {
        "filename": saved.filename,
        "size": saved.size,
        "savedAt": saved.saved_at.isoformat(),
    }


def _loaded_payload(loaded: LoadedDocument) -> dict:
    document = loaded.document
    return {
        "projectName": document.project_info.name,
        "version": loaded.version,
        "savedAt": loaded.saved_at.isoformat() if loaded.saved_at else None,
        "categories": len(document.categories),
        "items": sum(len(category.items) for category in document.categories),
    }


@router.get(
    "",
    response_model=APIResponse,
    summary="列出已儲存文件",
)
async def list_files(persistence: PersistenceDep) -> dict:
    return {
        "success": True,
        "message": "成功取得文件列表",
        "data": persistence.file_manager.list_documents(),
    }


@router.post(
    "/save",
    response_model=APIResponse,
    summary="儲存",
)
async def save_document(persistence: PersistenceDep, request: Optional[SaveRequest] = None) -> dict:
    """
    儲存到目前檔案；尚未儲存過時使用 filename 或專案名稱.

    - **filename**: 第一次儲存時的檔名（可選）
    """
    try:
        saved = persistence.save(request.filename if request else None)
        return {
            "success": True,
            "message": f"已儲存：{saved.filename}",
            "data": _saved_payload(saved),
        }

    except Exception as e:
        log_error(e, context="Save document")
        raise


@router.post(
    "/save-as",
    response_model=APIResponse,
    summary="另存新檔",
)
async def save_document_as(request: SaveRequest, persistence: PersistenceDep) -> dict:
    try:
        saved = persistence.save_as(request.filename)
        return {
            "success": True,
            "message": f"已儲存：{saved.filename}",
            "data": _saved_payload(saved),
        }

    except Exception as e:
        log_error(e, context="Save document as")
        raise


@router.post(
    "/open",
    response_model=APIResponse,
    summary="開啟已儲存文件",
)
async def open_document(
    request: OpenRequest,
    session: SessionDep,
    persistence: PersistenceDep,
) -> dict:
    """
    開啟文件目錄中的 .ffe 檔案.

    - **filename**: 檔名
    - **confirm_discard**: 有未儲存變更時必須為 true
    """
    try:
        require_discard_confirmation(session, request.confirm_discard)
        loaded = persistence.open(request.filename)
        return {
            "success": True,
            "message": f"已開啟：{loaded.document.project_info.name}",
            "data": _loaded_payload(loaded),
        }

    except Exception as e:
        log_error(e, context=f"Open document: {request.filename}")
        raise


@router.post(
    "/upload",
    response_model=APIResponse,
    summary="上傳並開啟文件",
)
async def upload_document(
    session: SessionDep,
    persistence: PersistenceDep,
    file: UploadFile = File(...),
    confirm_discard: bool = Form(False),
) -> dict:
    try:
        require_discard_confirmation(session, confirm_discard)
        content = await file.read()
        loaded = persistence.open_bytes(content, file.filename or "", file.content_type)
        return {
            "success": True,
            "message": f"已開啟：{loaded.document.project_info.name}",
            "data": _loaded_payload(loaded),
        }

    except Exception as e:
        log_error(e, context=f"Upload document: {file.filename}")
        raise


@router.get(
    "/download",
    summary="下載目前文件",
)
async def download_document(session: SessionDep, persistence: PersistenceDep) -> Response:
    """以 .ffe 下載目前文件（不影響未儲存狀態）."""
    content = persistence.export_bytes()
    filename = suggested_filename(session.project_info.name, persistence.file_manager.extension)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
