"""Document API routes: read access, new document, project info."""

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...api.dependencies import PersistenceDep, SessionDep, require_discard_confirmation
from ...models import APIResponse, MutationResponse
from ...models.category import Category
from ...models.totals import Totals
from ...utils import log_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Document"])


class NewDocumentRequest(BaseModel):
    """Request model for starting a blank document."""
    confirm_discard: bool = False


class ProjectFieldRequest(BaseModel):
    """Request model for a project info field update."""
    field: str = Field(..., description="例如 name, allowance, salesTaxRate, terms")
    value: Any = None


def category_payload(category: Category) -> dict:
    """Stored fields plus the runtime iconKey the UI resolves to an icon."""
    return {**category.to_json_dict(), "iconKey": category.icon_key}


def totals_payload(totals: Totals) -> dict:
    """Exact amounts as decimal strings plus the rounded display strings."""
    return {
        "categoryTotals": {key: str(amount) for key, amount in totals.category_totals.items()},
        "grandTotal": str(totals.grand_total),
        "tax": str(totals.tax),
        "totalWithTax": str(totals.total_with_tax),
        "variance": str(totals.variance),
        "isOverBudget": totals.is_over_budget,
        "formatted": totals.formatted(),
    }


@router.get(
    "/document",
    response_model=APIResponse,
    summary="取得目前文件",
)
async def get_document(session: SessionDep) -> dict:
    """專案資訊、類別、總計與未儲存狀態."""
    document = session.snapshot()
    return {
        "success": True,
        "message": "成功取得文件",
        "data": {
            "projectInfo": document.project_info.to_json_dict(),
            "categories": [category_payload(category) for category in document.categories],
            "totals": totals_payload(session.totals()),
            "dirty": session.is_dirty(),
        },
    }


@router.get(
    "/document/totals",
    response_model=APIResponse,
    summary="取得總計",
)
async def get_totals(session: SessionDep) -> dict:
    return {
        "success": True,
        "message": "成功取得總計",
        "data": totals_payload(session.totals()),
    }


@router.post(
    "/document/new",
    response_model=APIResponse,
    summary="建立新文件",
)
async def new_document(
    request: NewDocumentRequest,
    session: SessionDep,
    persistence: PersistenceDep,
) -> dict:
    """
    以空白範本取代目前文件.

    - **confirm_discard**: 有未儲存變更時必須為 true，否則回傳 409
    """
    try:
        require_discard_confirmation(session, request.confirm_discard)
        persistence.new_document()
        document = session.snapshot()
        return {
            "success": True,
            "message": "已建立新文件",
            "data": {
                "projectInfo": document.project_info.to_json_dict(),
                "categories": [category_payload(category) for category in document.categories],
                "dirty": session.is_dirty(),
            },
        }

    except Exception as e:
        log_error(e, context="New document")
        raise


@router.patch(
    "/document/project",
    response_model=MutationResponse,
    summary="更新專案資訊欄位",
)
async def update_project_field(request: ProjectFieldRequest, session: SessionDep) -> MutationResponse:
    result = session.update_project_field(request.field, request.value)
    return MutationResponse.from_result(result, session.is_dirty())
