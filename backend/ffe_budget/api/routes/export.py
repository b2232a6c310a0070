"""Ledger export routes."""

import logging

from fastapi import APIRouter
from fastapi.responses import Response

from ...api.dependencies import SessionDep
from ...services.ledger_export import export_csv, export_xlsx
from ...services.persistence import suggested_filename
from ...utils import log_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/export", tags=["Export"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/csv", summary="匯出 CSV")
async def export_ledger_csv(session: SessionDep) -> Response:
    try:
        document = session.snapshot()
        content = export_csv(document)
        return _attachment(
            content,
            suggested_filename(document.project_info.name, ".csv"),
            "text/csv; charset=utf-8",
        )

    except Exception as e:
        log_error(e, context="Export CSV")
        raise


@router.get("/xlsx", summary="匯出 Excel")
async def export_ledger_xlsx(session: SessionDep) -> Response:
    try:
        document = session.snapshot()
        content = export_xlsx(document)
        return _attachment(
            content,
            suggested_filename(document.project_info.name, ".xlsx"),
            XLSX_MEDIA_TYPE,
        )

    except Exception as e:
        log_error(e, context="Export Excel")
        raise
