"""Import API routes."""

from fastapi import APIRouter, Depends, UploadFile
from fastapi.responses import JSONResponse

from cattree.importer.parsers.table import MalformedTableError
from cattree.importer.service import ImportService
from cattree.models import TableRow, TreeResult
from cattree.responses import reply

router = APIRouter(prefix="/api/owners", tags=["import"])


def get_import_service() -> ImportService:
    """Dependency placeholder — overridden at startup."""
    raise RuntimeError("ImportService not configured")


@router.post("/{owner}/import", response_model=None)
async def import_table(
    owner: str,
    file: UploadFile,
    service: ImportService = Depends(get_import_service),
) -> TreeResult | JSONResponse:
    """Import categories from an uploaded .xlsx workbook or .csv table."""
    content = await file.read()
    try:
        return await service.import_file(file.filename or "", content, owner)
    except MalformedTableError as e:
        result = TreeResult.failure(
            "malformed_table", reply("tree", "malformed_table", reason=str(e))
        )
        return JSONResponse(status_code=422, content=result.model_dump())


@router.post("/{owner}/import/rows")
async def import_rows(
    owner: str,
    rows: list[TableRow],
    service: ImportService = Depends(get_import_service),
) -> TreeResult:
    """Import categories from already-decoded table rows."""
    return await service.import_rows(rows, owner)
