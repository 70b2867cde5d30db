"""Full point-in-time export of every table as one JSON document."""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import inspect

from storefront.core.audit import AuditLog
from storefront.core.config import settings
from storefront.db.data_service import DataService

logger = logging.getLogger(__name__)

EXPORT_TABLES = ("categories", "products", "customers", "sales", "sale_items", "payments")


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def row_to_dict(row) -> Dict[str, Any]:
    return {col.key: _jsonable(getattr(row, col.key)) for col in inspect(row).mapper.column_attrs}


def backup_filename(today: Optional[date] = None) -> str:
    """moonlight-scent-backup-YYYY-MM-DD.json"""
    today = today or datetime.now(timezone.utc).date()
    slug = "-".join(settings.BUSINESS_NAME.lower().split())
    return f"{slug}-backup-{today.isoformat()}.json"


def export_snapshot(data: DataService, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    snapshot = {
        "timestamp": now.isoformat(),
        "data": {table: [row_to_dict(r) for r in data.fetch_all(table)] for table in EXPORT_TABLES},
    }
    counts = {table: len(rows) for table, rows in snapshot["data"].items()}
    logger.info(f"[Backup] Exported snapshot: {counts}")
    AuditLog.log_action("export", "backup", backup_filename(now.date()), changes=counts)
    return snapshot
