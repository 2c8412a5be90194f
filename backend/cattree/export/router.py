"""Export API routes."""

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response

from cattree.export.service import ExportService
from cattree.models import TableRow

router = APIRouter(prefix="/api/owners", tags=["export"])

EXPORT_FILENAME = "AllCategoriesTree.xlsx"
CSV_EXPORT_FILENAME = "AllCategoriesTree.csv"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_export_service() -> ExportService:
    """Dependency placeholder — overridden at startup."""
    raise RuntimeError("ExportService not configured")


def _attachment(content: str | bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{owner}/export", response_model=None)
async def export_tree(
    owner: str,
    format: Literal["xlsx", "csv", "rows"] = Query("xlsx"),
    service: ExportService = Depends(get_export_service),
) -> Response | list[TableRow]:
    """Export an owner's forest as a workbook, a CSV attachment, or parsed rows."""
    if format == "rows":
        return await service.export_rows(owner)
    if format == "csv":
        return _attachment(await service.export_csv(owner), "text/csv", CSV_EXPORT_FILENAME)
    return _attachment(await service.export_xlsx(owner), XLSX_MEDIA_TYPE, EXPORT_FILENAME)
