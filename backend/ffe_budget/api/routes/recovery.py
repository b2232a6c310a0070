"""Recovery draft routes."""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ...api.dependencies import AutoSaveDep, SessionDep, require_discard_confirmation
from ...models import APIResponse
from ...utils import ErrorCode, log_error, raise_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/recovery", tags=["Recovery"])


class ResumeRequest(BaseModel):
    confirm_discard: bool = False


@router.get(
    "",
    response_model=APIResponse,
    summary="檢查可復原的草稿",
)
async def get_recovery_draft(autosave: AutoSaveDep) -> dict:
    """data 為 null 代表沒有值得復原的草稿."""
    draft = autosave.find_recovery_draft()
    if draft is None:
        return {"success": True, "message": "沒有可復原的草稿", "data": None}
    return {
        "success": True,
        "message": f"找到草稿：{draft.project_name}",
        "data": {
            "projectName": draft.project_name,
            "savedAt": draft.saved_at.isoformat() if draft.saved_at else None,
            "categories": draft.categories,
            "items": draft.items,
        },
    }


@router.post(
    "/resume",
    response_model=APIResponse,
    summary="復原草稿",
)
async def resume_recovery_draft(
    session: SessionDep,
    autosave: AutoSaveDep,
    request: Optional[ResumeRequest] = None,
) -> dict:
    """載入草稿；文件會標記為未儲存."""
    try:
        require_discard_confirmation(session, bool(request and request.confirm_discard))
        document = autosave.resume_draft()
        if document is None:
            raise_error(ErrorCode.NO_RECOVERY_DRAFT, status_code=404)
        return {
            "success": True,
            "message": f"已復原草稿：{document.project_info.name}",
            "data": {"projectName": document.project_info.name, "dirty": session.is_dirty()},
        }

    except Exception as e:
        log_error(e, context="Resume recovery draft")
        raise


@router.delete(
    "",
    response_model=APIResponse,
    summary="捨棄草稿",
)
async def discard_recovery_draft(autosave: AutoSaveDep) -> dict:
    autosave.discard_draft()
    return {"success": True, "message": "草稿已捨棄", "data": None}
