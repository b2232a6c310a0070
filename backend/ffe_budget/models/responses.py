"""API Response models."""

from pydantic import BaseModel, Field
from typing import Optional, Generic, TypeVar, Any
from datetime import datetime

from .outcome import MutationResult


T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = Field(..., description="是否成功")
    message: str = Field(..., description="訊息")
    data: Optional[T] = Field(None, description="回應資料")
    timestamp: datetime = Field(default_factory=datetime.now, description="回應時間")


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = Field(False, description="是否成功")
    message: str = Field(..., description="錯誤訊息")
    error_code: Optional[str] = Field(None, description="錯誤代碼")
    details: Optional[Any] = Field(None, description="錯誤細節")
    timestamp: datetime = Field(default_factory=datetime.now, description="回應時間")


class MutationResponse(BaseModel):
    """
    Mutation API 回應 DTO.

    Rejected and not-found outcomes are non-fatal, so they come back as a
    normal response with success=false instead of an HTTP error.
    """

    success: bool
    message: str
    status: str = Field(..., description="applied | rejected | not_found")
    data: Optional[Any] = None
    dirty: bool = Field(False, description="文件是否有未儲存變更")
    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_result(cls, result: MutationResult, dirty: bool) -> "MutationResponse":
        data = result.data
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json", by_alias=True)
        return cls(
            success=result.ok,
            message=result.message,
            status=result.status.value,
            data=data,
            dirty=dirty,
        )
