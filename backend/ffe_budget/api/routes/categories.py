"""Category and line item mutation routes.

Every route maps a MutationResult to MutationResponse: rejected and
not_found come back as HTTP 200 with success=false.
"""

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, File, UploadFile
from pydantic import BaseModel, Field

from ...api.dependencies import AttachmentValidatorDep, SessionDep
from ...models import MutationResponse, Specification
from ...utils import log_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Categories"])


class AddCategoryRequest(BaseModel):
    """Request model for adding a category."""
    index: Optional[int] = Field(None, description="插入位置（預設加在最後）")


class RenameCategoryRequest(BaseModel):
    """Request model for renaming a category."""
    title: str


class AddItemRequest(BaseModel):
    index: Optional[int] = None


class ItemUpdateRequest(BaseModel):
    """Request model for one item field update (validated as an ItemFieldUpdate)."""
    field: str
    value: Any = None


class MoveItemRequest(BaseModel):
    """Request model for moving an item one position."""
    index: int
    direction: Literal["up", "down"]


class PriceQuoteRequest(BaseModel):
    """Request model for applying a quoted price such as "$1,234.00"."""
    price: str


def _respond(session, result) -> MutationResponse:
    return MutationResponse.from_result(result, session.is_dirty())


# ===== Categories =====


@router.post(
    "/categories",
    response_model=MutationResponse,
    summary="新增類別",
)
async def add_category(session: SessionDep, request: Optional[AddCategoryRequest] = None) -> MutationResponse:
    index = request.index if request else None
    return _respond(session, session.add_category(index))


@router.patch(
    "/categories/{category_id}",
    response_model=MutationResponse,
    summary="重新命名類別",
)
async def rename_category(
    category_id: str,
    request: RenameCategoryRequest,
    session: SessionDep,
) -> MutationResponse:
    return _respond(session, session.update_category_title(category_id, request.title))


@router.delete(
    "/categories/{category_id}",
    response_model=MutationResponse,
    summary="刪除類別",
)
async def remove_category(category_id: str, session: SessionDep) -> MutationResponse:
    """刪除類別及其所有品項（確認由前端負責）."""
    return _respond(session, session.remove_category(category_id))


# ===== Line items =====


@router.post(
    "/categories/{category_id}/items",
    response_model=MutationResponse,
    summary="新增品項",
)
async def add_item(
    category_id: str,
    session: SessionDep,
    request: Optional[AddItemRequest] = None,
) -> MutationResponse:
    index = request.index if request else None
    return _respond(session, session.add_item(category_id, index))


@router.post(
    "/categories/{category_id}/items/move",
    response_model=MutationResponse,
    summary="上下移動品項",
)
async def move_item(
    category_id: str,
    request: MoveItemRequest,
    session: SessionDep,
) -> MutationResponse:
    return _respond(session, session.move_item(category_id, request.index, request.direction))


@router.patch(
    "/categories/{category_id}/items/{item_id}",
    response_model=MutationResponse,
    summary="更新品項欄位",
)
async def update_item(
    category_id: str,
    item_id: int,
    request: ItemUpdateRequest,
    session: SessionDep,
) -> MutationResponse:
    """
    更新單一品項欄位.

    - **field**: manufacturer | description | dimensions | quantity |
      unitPrice | leadTime | status | notes
    - **value**: 欄位值（quantity / unitPrice 必須為非負數）
    """
    return _respond(session, session.update_item_field(category_id, item_id, request.field, request.value))


@router.delete(
    "/categories/{category_id}/items/{item_id}",
    response_model=MutationResponse,
    summary="刪除品項",
)
async def remove_item(category_id: str, item_id: int, session: SessionDep) -> MutationResponse:
    return _respond(session, session.remove_item(category_id, item_id))


@router.post(
    "/categories/{category_id}/items/{item_id}/duplicate",
    response_model=MutationResponse,
    summary="複製品項",
)
async def duplicate_item(category_id: str, item_id: int, session: SessionDep) -> MutationResponse:
    return _respond(session, session.duplicate_item(category_id, item_id))


@router.put(
    "/categories/{category_id}/items/{item_id}/specification",
    response_model=MutationResponse,
    summary="儲存品項規格",
)
async def save_specification(
    category_id: str,
    item_id: int,
    specification: Specification,
    session: SessionDep,
) -> MutationResponse:
    return _respond(session, session.save_item_specification(category_id, item_id, specification))


@router.post(
    "/categories/{category_id}/items/{item_id}/attachments",
    response_model=MutationResponse,
    summary="上傳規格附件",
)
async def add_attachment(
    category_id: str,
    item_id: int,
    session: SessionDep,
    validator: AttachmentValidatorDep,
    file: UploadFile = File(...),
) -> MutationResponse:
    """
    上傳附件並嵌入品項規格.

    - **file**: 圖片或文件（預設上限 10MB）
    """
    try:
        content = await file.read()
        filename = file.filename or "attachment"
        validator.validate_attachment(filename, len(content))
        result = session.add_attachment(
            category_id,
            item_id,
            name=filename,
            mime_type=file.content_type or "application/octet-stream",
            content=content,
        )
        return _respond(session, result)

    except Exception as e:
        log_error(e, context=f"Add attachment: {category_id}/{item_id}")
        raise


@router.delete(
    "/categories/{category_id}/items/{item_id}/attachments/{attachment_id}",
    response_model=MutationResponse,
    summary="刪除規格附件",
)
async def remove_attachment(
    category_id: str,
    item_id: int,
    attachment_id: str,
    session: SessionDep,
) -> MutationResponse:
    return _respond(session, session.remove_attachment(category_id, item_id, attachment_id))


@router.post(
    "/categories/{category_id}/items/{item_id}/price-quote",
    response_model=MutationResponse,
    summary="套用報價",
)
async def apply_price_quote(
    category_id: str,
    item_id: int,
    request: PriceQuoteRequest,
    session: SessionDep,
) -> MutationResponse:
    """從報價文字（例如 "$1,234.00"）設定單價."""
    return _respond(session, session.apply_price_quote(category_id, item_id, request.price))
