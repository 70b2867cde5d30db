"""Backup: full JSON export of the store's data as a download."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.api.deps import get_data_service
from storefront.db.data_service import DataService
from storefront.services.backup_service import backup_filename, export_snapshot

router = APIRouter()


@router.get("/export")
def export_backup(data: DataService = Depends(get_data_service)):
    """Download every table as ``{"timestamp", "data": {...}}``."""
    snapshot = export_snapshot(data)
    return JSONResponse(
        content=snapshot,
        headers={"Content-Disposition": f"attachment; filename={backup_filename()}"},
    )
